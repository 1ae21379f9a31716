from .auth import Token, TokenData
from .user import User
from .deal import Deal, DealCreate
from .points import LedgerEntry
from .rewards import Reward, Redemption
from .rate_table import RateSnapshot, RateTable
