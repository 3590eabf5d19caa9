class LunchError(Exception):
    pass


class MenuItemNotFound(LunchError):
    pass


class MissingCredential(LunchError):
    """No API key is available for the recommendation service."""


class SelectionBusy(LunchError):
    """A selection is already running."""


class RecommendationError(LunchError):
    """The recommendation service failed or answered with something unusable."""
