from kernel.arrays import date_to_int, dates_to_ints, int_to_date, ints_to_dates, reverse, trailing_windows
from kernel.linalg import FitCoefficients, check_design_rank, design_matrix, fit_three_parameter
from kernel.normalize import BASE_LEVEL, growth_factors, normalize_log_returns, normalize_log_returns_batch

__all__ = [
    "BASE_LEVEL",
    "FitCoefficients",
    "check_design_rank",
    "date_to_int",
    "dates_to_ints",
    "design_matrix",
    "fit_three_parameter",
    "growth_factors",
    "int_to_date",
    "ints_to_dates",
    "normalize_log_returns",
    "normalize_log_returns_batch",
    "reverse",
    "trailing_windows",
]
