class ChatError(Exception):
    """Expected failure of a chat operation, reported back to the caller."""
    status = 400
    default_message = "Bad request."

    def __init__(self, message=None, chat_id=None):
        self.message = message or self.default_message
        self.chat_id = chat_id
        super().__init__(self.message)


class ValidationFailed(ChatError):
    status = 400
    default_message = "Invalid request."


class Unauthorized(ChatError):
    status = 401
    default_message = "Unauthorized."


class NotFound(ChatError):
    status = 404
    default_message = "Not found."
