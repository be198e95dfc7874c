from .token import ERC20, MintableERC20

__all__ = [
    "ERC20",
    "MintableERC20",
]
