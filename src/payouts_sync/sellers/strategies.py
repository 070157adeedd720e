"""Create-or-update strategies pushing sellers to the payouts provider.

For a given seller exactly one strategy of a set applies. The executor checks
that on every call: when no strategy or several strategies claim a seller
(for instance a seller with no bank account details at all), nothing is
called and operators are alerted.
"""

import enum
import logging
from abc import ABC, abstractmethod
from typing import Any, Generic, List, Optional, Sequence, TypeVar

from ..connectors.base import (
    ConnectorError,
    HyperwalletBankAccount,
    HyperwalletUser,
    PayoutsConnector,
)
from ..notifications import Notifier, ERROR_MESSAGE_PREFIX
from ..retry import RetryPolicy
from .converters import to_hyperwallet_bank_account, to_hyperwallet_user
from .models import Seller
from .services import ShopTokenWriter

logger = logging.getLogger(__name__)

S = TypeVar("S")
R = TypeVar("R")


class BankAccountAction(str, enum.Enum):
    CREATE = "create"
    UPDATE = "update"
    UNSPECIFIED = "unspecified"


def decide_bank_account_action(seller: Seller) -> BankAccountAction:
    details = seller.bank_account_details
    if details is None:
        return BankAccountAction.UNSPECIFIED
    if details.token is None:
        return BankAccountAction.CREATE
    return BankAccountAction.UPDATE


class Strategy(ABC, Generic[S, R]):
    @abstractmethod
    def is_applicable(self, source: S) -> bool:
        raise NotImplementedError

    @abstractmethod
    def execute(self, source: S) -> Optional[R]:
        raise NotImplementedError


class StrategyExecutor(Generic[S, R]):
    """Runs the single applicable strategy of an ordered list."""

    def __init__(self, strategies: Sequence[Strategy[S, R]], notifier: Notifier, name: str):
        self.strategies = list(strategies)
        self.notifier = notifier
        self.name = name

    def select(self, source: S, source_id: str = "") -> Optional[Strategy[S, R]]:
        applicable = [s for s in self.strategies if s.is_applicable(source)]
        if len(applicable) == 1:
            return applicable[0]
        names = ",".join(type(s).__name__ for s in applicable) or "none"
        message = (
            f"Expected exactly one {self.name} strategy for [{source_id}], "
            f"found {len(applicable)} ({names})"
        )
        logger.error(message)
        self.notifier.send_plain_text(f"Issue detected selecting {self.name} strategy", message)
        return None

    def execute(self, source: S, source_id: str = "") -> Optional[R]:
        strategy = self.select(source, source_id)
        if strategy is None:
            return None
        return strategy.execute(source)


class PayoutsRetryStrategy(Strategy[Seller, R]):
    """Calls the payouts provider under a retry policy.

    Exhausted retries are logged and alerted and yield None; callers treat
    None as a recoverable per-seller failure.
    """

    action = "call"

    def __init__(
        self,
        payouts: PayoutsConnector,
        writer: ShopTokenWriter,
        notifier: Notifier,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self.payouts = payouts
        self.writer = writer
        self.notifier = notifier
        self.retry_policy = retry_policy or RetryPolicy()

    @abstractmethod
    def convert(self, seller: Seller) -> Optional[Any]:
        raise NotImplementedError

    @abstractmethod
    def call_api(self, program: str, payload: Any) -> R:
        raise NotImplementedError

    def on_success(self, seller: Seller, result: R) -> None:
        pass

    def execute(self, seller: Seller) -> Optional[R]:
        shop_id = seller.client_user_id
        payload = self.convert(seller)
        if payload is None or not seller.hyperwallet_program:
            logger.warning(f"Cannot {self.action} for shop [{shop_id}], seller data is incomplete")
            return None
        try:
            result = self.retry_policy.call(self.call_api, seller.hyperwallet_program, payload)
        except ConnectorError as e:
            message = f"Something went wrong trying to {self.action} for shop [{shop_id}]\n{e.describe()}"
            logger.error(f"{message} (after {self.retry_policy.attempts} attempts)")
            self.notifier.send_plain_text(
                f"Issue detected when trying to {self.action} in Hyperwallet",
                ERROR_MESSAGE_PREFIX + message,
            )
            return None
        self.on_success(seller, result)
        return result


class CreateBankAccountStrategy(PayoutsRetryStrategy[HyperwalletBankAccount]):
    """Creates the bank account and stores its token on the shop."""

    action = "create bank account"

    def is_applicable(self, seller: Seller) -> bool:
        return decide_bank_account_action(seller) == BankAccountAction.CREATE

    def convert(self, seller: Seller) -> Optional[HyperwalletBankAccount]:
        return to_hyperwallet_bank_account(seller)

    def call_api(self, program: str, payload: HyperwalletBankAccount) -> HyperwalletBankAccount:
        return self.payouts.create_bank_account(program, payload)

    def on_success(self, seller: Seller, result: HyperwalletBankAccount) -> None:
        if result.token:
            self.writer.update_bank_account_token(seller, result.token)


class UpdateBankAccountStrategy(PayoutsRetryStrategy[HyperwalletBankAccount]):
    action = "update bank account"

    def is_applicable(self, seller: Seller) -> bool:
        return decide_bank_account_action(seller) == BankAccountAction.UPDATE

    def convert(self, seller: Seller) -> Optional[HyperwalletBankAccount]:
        return to_hyperwallet_bank_account(seller)

    def call_api(self, program: str, payload: HyperwalletBankAccount) -> HyperwalletBankAccount:
        return self.payouts.update_bank_account(program, payload)


class CreateUserStrategy(PayoutsRetryStrategy[HyperwalletUser]):
    action = "create user"

    def is_applicable(self, seller: Seller) -> bool:
        return seller.token is None

    def convert(self, seller: Seller) -> HyperwalletUser:
        return to_hyperwallet_user(seller)

    def call_api(self, program: str, payload: HyperwalletUser) -> HyperwalletUser:
        return self.payouts.create_user(program, payload)

    def on_success(self, seller: Seller, result: HyperwalletUser) -> None:
        if result.token:
            self.writer.update_user_token(seller, result.token)


class UpdateUserStrategy(PayoutsRetryStrategy[HyperwalletUser]):
    action = "update user"

    def is_applicable(self, seller: Seller) -> bool:
        return seller.token is not None

    def convert(self, seller: Seller) -> HyperwalletUser:
        return to_hyperwallet_user(seller)

    def call_api(self, program: str, payload: HyperwalletUser) -> HyperwalletUser:
        return self.payouts.update_user(program, payload)


def bank_account_strategy_executor(
    payouts: PayoutsConnector,
    writer: ShopTokenWriter,
    notifier: Notifier,
    retry_policy: Optional[RetryPolicy] = None,
) -> StrategyExecutor[Seller, HyperwalletBankAccount]:
    strategies: List[Strategy] = [
        CreateBankAccountStrategy(payouts, writer, notifier, retry_policy),
        UpdateBankAccountStrategy(payouts, writer, notifier, retry_policy),
    ]
    return StrategyExecutor(strategies, notifier, "bank account")


def user_strategy_executor(
    payouts: PayoutsConnector,
    writer: ShopTokenWriter,
    notifier: Notifier,
    retry_policy: Optional[RetryPolicy] = None,
) -> StrategyExecutor[Seller, HyperwalletUser]:
    strategies: List[Strategy] = [
        CreateUserStrategy(payouts, writer, notifier, retry_policy),
        UpdateUserStrategy(payouts, writer, notifier, retry_policy),
    ]
    return StrategyExecutor(strategies, notifier, "user")
