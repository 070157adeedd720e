"""Seller, bank account and user synchronization."""

from .models import ProfileType, BankAccountType, BankAccountDetails, Seller
from .currency import CurrencyResolutionConfig, CurrencyResolver, SUPPORTED_TRANSFER_CURRENCIES
from .converters import SellerConverter, to_hyperwallet_user, to_hyperwallet_bank_account
from .services import ShopTokenWriter, SellerExtractService, TokenSynchronizationService
from .strategies import (
    BankAccountAction,
    decide_bank_account_action,
    Strategy,
    StrategyExecutor,
    PayoutsRetryStrategy,
    CreateBankAccountStrategy,
    UpdateBankAccountStrategy,
    CreateUserStrategy,
    UpdateUserStrategy,
    bank_account_strategy_executor,
    user_strategy_executor,
)

__all__ = [
    "ProfileType",
    "BankAccountType",
    "BankAccountDetails",
    "Seller",
    "CurrencyResolutionConfig",
    "CurrencyResolver",
    "SUPPORTED_TRANSFER_CURRENCIES",
    "SellerConverter",
    "to_hyperwallet_user",
    "to_hyperwallet_bank_account",
    "ShopTokenWriter",
    "SellerExtractService",
    "TokenSynchronizationService",
    "BankAccountAction",
    "decide_bank_account_action",
    "Strategy",
    "StrategyExecutor",
    "PayoutsRetryStrategy",
    "CreateBankAccountStrategy",
    "UpdateBankAccountStrategy",
    "CreateUserStrategy",
    "UpdateUserStrategy",
    "bank_account_strategy_executor",
    "user_strategy_executor",
]
