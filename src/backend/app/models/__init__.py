from app.models.participant import Participant

__all__ = ["Participant"]
