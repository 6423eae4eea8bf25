from .addresses import alias_of, build_envelope, extract_addresses, extract_sender
from .mime_parser import parse_message

__all__ = ["parse_message", "build_envelope", "extract_addresses", "extract_sender", "alias_of"]
