"""
QR frame codecs exchanged with the air-gapped signer.
"""

__all__ = []
