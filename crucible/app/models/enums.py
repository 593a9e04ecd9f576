from enum import StrEnum

class SubmissionStatus(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

class TournamentStatus(StrEnum):
    ACTIVE = "active"
    VOTING = "voting"
    COMPLETED = "completed"
    ENDED = "ended"  # superseded by a newer tournament before completion

class Discipline(StrEnum):
    GLYPHSPIN = "glyphspin"
    EMBEDWEAVE = "embedweave"
    TOKENCRAFT = "tokencraft"
    ATTENTION_THEATER = "attention-theater"
    CONTEXT_CINEMA = "context-cinema"
    PROBABILITY_GARDENS = "probability-gardens"
    CHORUS = "chorus"
    CALL_ECHO = "call-echo"
    CONFABULATION = "confabulation"
    INFERENCE_DANCE = "inference-dance"
    LIMINAL_LINGUISTICS = "liminal-linguistics"
    GENERATIVE_GARDENS = "generative-gardens"

DISCIPLINES = [d.value for d in Discipline]
