"""
SuperFarm - Ownership Registry

ERC721-style token ownership. The registry assigns owners and calls a
pre-transfer hook before every ownership change:

    mint(owner, id)      -> hook(None, owner, id)
    transfer(a, b, id)   -> hook(a, b, id)
    burn(id)             -> hook(owner, None, id)

The hook may abort the change by raising; ownership is then left as it was.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional

from .errors import RegistryError
from .flow_types import is_null_address, same_address, short_addr

log = logging.getLogger(__name__)

TransferHook = Callable[[Optional[str], Optional[str], int], None]


class OwnershipRegistry(ABC):
    """Token custody the controller depends on."""

    @abstractmethod
    def owner_of(self, token_id: int) -> str:
        ...

    @abstractmethod
    def mint(self, owner: str, token_id: int):
        ...

    @abstractmethod
    def burn(self, token_id: int):
        ...

    @abstractmethod
    def transfer(self, sender: str, receiver: str, token_id: int):
        ...

    @abstractmethod
    def set_transfer_hook(self, hook: TransferHook):
        ...


class InMemoryRegistry(OwnershipRegistry):
    """
    Dict-backed NFT registry.

    Usage:
        registry = InMemoryRegistry("SuperFaaSToken", "SFST")
        registry.set_transfer_hook(controller.before_token_transfer)
        registry.mint(alice, 0)
        registry.transfer(alice, bob, 0)
    """

    def __init__(self, name: str = "", symbol: str = ""):
        self.name = name
        self.symbol = symbol
        self._owners: Dict[int, str] = {}
        self._hook: Optional[TransferHook] = None

    def set_transfer_hook(self, hook: TransferHook):
        self._hook = hook

    def _before_transfer(self, sender: Optional[str], receiver: Optional[str],
                         token_id: int):
        if self._hook is not None:
            self._hook(sender, receiver, token_id)

    def owner_of(self, token_id: int) -> str:
        owner = self._owners.get(token_id)
        if owner is None:
            raise RegistryError(f"Token {token_id} does not exist",
                                {"token_id": token_id})
        return owner

    def exists(self, token_id: int) -> bool:
        return token_id in self._owners

    def mint(self, owner: str, token_id: int):
        if is_null_address(owner):
            raise RegistryError("Mint to the zero address")
        if token_id in self._owners:
            raise RegistryError(f"Token {token_id} already minted",
                                {"token_id": token_id})
        self._before_transfer(None, owner, token_id)
        self._owners[token_id] = owner
        log.debug(f"Minted token {token_id} to {short_addr(owner)}")

    def burn(self, token_id: int):
        owner = self.owner_of(token_id)
        self._before_transfer(owner, None, token_id)
        del self._owners[token_id]
        log.debug(f"Burned token {token_id} from {short_addr(owner)}")

    def transfer(self, sender: str, receiver: str, token_id: int):
        owner = self.owner_of(token_id)
        if not same_address(owner, sender):
            raise RegistryError(
                f"Transfer of token {token_id} from incorrect owner {short_addr(sender)}",
                {"token_id": token_id})
        if is_null_address(receiver):
            raise RegistryError("Transfer to the zero address")
        self._before_transfer(owner, receiver, token_id)
        self._owners[token_id] = receiver
        log.debug(f"Moved token {token_id}: {short_addr(owner)} -> {short_addr(receiver)}")

    def balance_of(self, owner: str) -> int:
        return len(self.tokens_of(owner))

    def tokens_of(self, owner: str) -> List[int]:
        return sorted(t for t, o in self._owners.items() if same_address(o, owner))

    # ═══════════════════════════════════════════════════════════════════════
    # ROLLBACK SUPPORT
    # ═══════════════════════════════════════════════════════════════════════

    def snapshot(self) -> Dict[int, str]:
        return dict(self._owners)

    def restore(self, snap: Dict[int, str]):
        self._owners = dict(snap)
