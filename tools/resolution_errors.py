"""
Resolution Errors — Structured exception hierarchy for command arguments.

Every error a command handler can recover from carries the chat line the
user should see. Cogs catch ResolutionError and reply with user_message;
nothing here should ever take the process down except
MapListUnavailableError, which aborts startup.
"""


class ResolutionError(Exception):
    """Base class for all recoverable argument-resolution errors."""

    user_message = "Failed to execute command."

    def __init__(self, message: str = ""):
        super().__init__(message or self.user_message)


class InvalidSteamIdError(ResolutionError):
    """A string was expected to be a SteamID and is not."""

    def __init__(self, raw: str):
        self.raw = raw
        self.user_message = f"`{raw}` is not a valid SteamID. Expected something like `STEAM_1:1:161178172`."
        super().__init__(f"Invalid SteamID: {raw!r}")


class MissingSteamIdError(ResolutionError):
    """No SteamID could be found for the targeted player.

    blame_user is True when the requester gave no player at all (they
    should use /setsteam) and False when they @mention'd someone else.
    """

    def __init__(self, blame_user: bool):
        self.blame_user = blame_user
        if blame_user:
            self.user_message = (
                "You didn't specify a SteamID and also didn't set it with `/setsteam`. "
                "Please specify a SteamID or save yours with `/setsteam`."
            )
        else:
            self.user_message = "The user you @mention'd didn't save their SteamID in my database."
        super().__init__(f"Missing SteamID (blame_user={blame_user})")


class MissingModeError(ResolutionError):
    """No mode was given and the requester has no stored preference."""

    user_message = (
        "You didn't specify a mode and also didn't set your preference with `/mode`. "
        "Please specify one or use `/mode` to set a preference."
    )


class MapNotFoundError(ResolutionError):
    """No global map matched the query."""

    user_message = "Map is not global."

    def __init__(self, query: str = ""):
        self.query = query
        super().__init__(f"No global map matches {query!r}")


class DatabaseAccessError(ResolutionError):
    """The user store failed (connectivity, query error). Not the same as 'no row'."""

    user_message = "Failed to access the database."


class RemoteApiFailureError(ResolutionError):
    """A GlobalAPI lookup failed or returned nothing usable."""

    user_message = "Failed to fetch data from the GlobalAPI. Please try again later."


class NoRecordsError(ResolutionError):
    """The GlobalAPI returned no records for a query."""

    user_message = "No records found."


class MapListUnavailableError(Exception):
    """The global map list could not be loaded at startup. Fatal."""
    pass
