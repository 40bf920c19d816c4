"""Expected, caller-correctable failures raised by the services.

The request layer turns these into user-facing messages; anything else
(database errors included) is unexpected and propagates as-is.
"""


class NameMatchError(Exception):
    default_message = "Request could not be completed."

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class ConflictError(NameMatchError):
    default_message = (
        "You already have an active session. "
        "Complete or leave it before starting a new one."
    )


class NotFoundError(NameMatchError):
    default_message = "Session not found."


class SelfJoinError(NameMatchError):
    default_message = "You cannot join your own session."


class AlreadyPartneredError(NameMatchError):
    default_message = "This session already has a partner."


class NoActiveSessionError(NameMatchError):
    default_message = "You must have an active session to vote."


class NameNotFoundError(NotFoundError):
    default_message = "Name not found."


class VoteNotFoundError(NotFoundError):
    default_message = "Vote not found for this name."


class NotADislikeError(NameMatchError):
    default_message = "You can only clear a dislike."
