from .api_usage import ApiUsageModel
from .summary import SummaryModel
from .user import UserModel

__all__ = [
    "ApiUsageModel",
    "SummaryModel",
    "UserModel",
]
