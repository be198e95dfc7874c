"""
Fungible balance ledger (ERC20-style).

Used both as collateral and as the base of the KPI claim token.
Public operations take the transaction sender as `caller` and run
inside a chain transaction.
"""

import logging
from typing import Dict

from kpitokens.chain import Contract
from kpitokens.core.addresses import is_zero_address, to_address
from kpitokens.core.errors import (
    InsufficientAllowance,
    InsufficientBalance,
    InvalidAmount,
    Unauthorized,
    ZeroAddressError,
)

logger = logging.getLogger(__name__)


class ERC20(Contract):
    def __init__(self, name: str = "", symbol: str = "", decimals: int = 18):
        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self.total_supply = 0
        self._balances: Dict[str, int] = {}
        self._allowances: Dict[str, Dict[str, int]] = {}

    # -------------------------------------------------
    # VIEWS
    # -------------------------------------------------
    def balance_of(self, account: str) -> int:
        return self._balances.get(to_address(account), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get(to_address(owner), {}).get(to_address(spender), 0)

    def holders(self) -> Dict[str, int]:
        return {account: balance for account, balance in self._balances.items() if balance > 0}

    # -------------------------------------------------
    # PUBLIC OPERATIONS
    # -------------------------------------------------
    def transfer(self, caller: str, to: str, amount: int) -> bool:
        with self.chain.transaction():
            self._transfer(caller, to, amount)
        return True

    def approve(self, caller: str, spender: str, amount: int) -> bool:
        with self.chain.transaction():
            self._approve(caller, spender, amount)
        return True

    def transfer_from(self, caller: str, owner: str, to: str, amount: int) -> bool:
        with self.chain.transaction():
            if self.balance_of(owner) < amount:
                raise InsufficientBalance(
                    f"{owner} holds {self.balance_of(owner)} {self.symbol}, {amount} required"
                )
            current = self.allowance(owner, caller)
            if current < amount:
                raise InsufficientAllowance(
                    f"{caller} may spend {current} {self.symbol} of {owner}, {amount} required"
                )
            self._approve(owner, caller, current - amount)
            self._transfer(owner, to, amount)
        return True

    # -------------------------------------------------
    # INTERNALS
    # -------------------------------------------------
    def _check_amount(self, amount: int) -> None:
        if not isinstance(amount, int) or amount < 0:
            raise InvalidAmount(f"Invalid token amount: {amount!r}")

    def _transfer(self, sender: str, recipient: str, amount: int) -> None:
        self._check_amount(amount)
        if is_zero_address(sender) or is_zero_address(recipient):
            raise ZeroAddressError("Transfers from or to the zero address are not allowed")

        sender = to_address(sender)
        recipient = to_address(recipient)

        balance = self._balances.get(sender, 0)
        if balance < amount:
            raise InsufficientBalance(
                f"{sender} holds {balance} {self.symbol}, {amount} required"
            )

        self._balances[sender] = balance - amount
        self._balances[recipient] = self._balances.get(recipient, 0) + amount
        self._emit("Transfer", sender=sender, recipient=recipient, amount=amount)

        logger.debug("%s: %s -> %s (%s)", self.symbol, sender, recipient, amount)
        self.chain.notify_receive(self.address, sender, recipient, amount)

    def _approve(self, owner: str, spender: str, amount: int) -> None:
        self._check_amount(amount)
        if is_zero_address(owner) or is_zero_address(spender):
            raise ZeroAddressError("Approvals from or to the zero address are not allowed")

        owner = to_address(owner)
        spender = to_address(spender)
        self._allowances.setdefault(owner, {})[spender] = amount
        self._emit("Approval", owner=owner, spender=spender, amount=amount)

    def _mint(self, account: str, amount: int) -> None:
        self._check_amount(amount)
        if is_zero_address(account):
            raise ZeroAddressError("Cannot mint to the zero address")

        account = to_address(account)
        self._balances[account] = self._balances.get(account, 0) + amount
        self.total_supply += amount
        self._emit("Transfer", sender=None, recipient=account, amount=amount)

    def _burn(self, account: str, amount: int) -> None:
        self._check_amount(amount)
        account = to_address(account)

        balance = self._balances.get(account, 0)
        if balance < amount:
            raise InsufficientBalance(
                f"{account} holds {balance} {self.symbol}, cannot burn {amount}"
            )

        self._balances[account] = balance - amount
        self.total_supply -= amount
        self._emit("Transfer", sender=account, recipient=None, amount=amount)


class MintableERC20(ERC20):
    """Collateral preset: the deployer-designated minter may create supply."""

    def __init__(self, name: str, symbol: str, minter: str, decimals: int = 18):
        super().__init__(name, symbol, decimals)
        self.minter = to_address(minter)

    def mint(self, caller: str, to: str, amount: int) -> bool:
        with self.chain.transaction():
            if to_address(caller) != self.minter:
                raise Unauthorized(f"{caller} is not the {self.symbol} minter")
            self._mint(to, amount)
        return True
