class SessionError(Exception):
    """Base class for session registry failures."""


class SessionPoolExhausted(SessionError):
    """Every slot already holds two players."""


class UnknownSession(SessionError):
    def __init__(self, session_id):
        super().__init__(f"unknown session {session_id}")
        self.session_id = session_id


class InvalidPlayer(SessionError):
    def __init__(self, session_id, player_id):
        super().__init__(f"player {player_id} is not part of session {session_id}")
        self.session_id = session_id
        self.player_id = player_id
