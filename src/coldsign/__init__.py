"""
coldsign - Hot-wallet side of the Zigner air-gapped signing protocol

Main Components:
- UR import: Bytewords text codec, minimal CBOR reader and the
  penumbra-accounts / zcash-accounts / zigner-backup record extractors
- QR codec: transaction request encoder, authorization response decoder
  and validator, legacy binary viewing-key import
- CLI: inspection and encoding commands for QR payloads
"""

__version__ = "0.1.0"
__author__ = "coldsign developers"

__all__ = []
