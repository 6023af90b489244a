"""
UR import stack: Bytewords decoding, minimal CBOR reading and the record
extractors for the account and backup exports of the cold device.
"""

__all__ = []
