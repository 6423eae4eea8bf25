from .attachments import AttachmentService
from .doctor import run_doctor_checks
from .identity import IdentityResolver
from .ingestion import IngestionService
from .messages import MessageMaterializer
from .relations import RelationManager

__all__ = [
    "AttachmentService",
    "IdentityResolver",
    "IngestionService",
    "MessageMaterializer",
    "RelationManager",
    "run_doctor_checks",
]
