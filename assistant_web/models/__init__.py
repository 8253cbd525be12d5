from assistant_web.models.recording import RecordedTurn

__all__ = ["RecordedTurn"]
