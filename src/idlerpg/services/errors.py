"""Service-layer exceptions."""


class GameError(Exception):
    """Base class for engine failures."""


class ConfigurationError(GameError):
    """Raised at startup when a catalog or table is unusable."""


class ActionError(GameError):
    """A user action was refused; reported to the player, never fatal."""

    reason = "action_failed"


class InsufficientFundsError(ActionError):
    """Raised when the player cannot afford a purchase or skill."""

    reason = "insufficient_funds"

    def __init__(self, cost: int, gold: int) -> None:
        super().__init__(f"Need {cost} gold, have {gold}.")
        self.cost = cost
        self.gold = gold


class OnCooldownError(ActionError):
    """Raised when a skill is used before its cooldown has elapsed."""

    reason = "on_cooldown"

    def __init__(self, key: str, remaining: int) -> None:
        super().__init__(f"Skill '{key}' is on cooldown for {remaining} more round(s).")
        self.key = key
        self.remaining = remaining


class UnknownSkillError(ActionError):
    reason = "unknown_skill"


class UnknownUpgradeError(ActionError):
    reason = "unknown_upgrade"


class ItemNotOwnedError(ActionError):
    reason = "item_not_owned"


class ItemNotUsableError(ActionError):
    """Raised for an owned item that is not in the loot table."""

    reason = "item_not_usable"


class UnknownActionError(ActionError):
    reason = "unknown_action"


class NotFoundError(GameError):
    """Raised when no progression record exists for a user."""


class StorageError(GameError):
    """Raised when the store cannot complete a read or write; usually transient."""


class SaveLoadError(GameError):
    """Raised when a stored payload cannot be converted back into a record."""


class UnauthenticatedError(GameError):
    """Raised when a credential does not map to a user."""


class AlreadyRegisteredError(GameError):
    """Raised when registering a user id that already has a progression."""
