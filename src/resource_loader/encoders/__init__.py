"""
Encoders turning fetched binary bodies into embeddable text.
"""

from resource_loader.encoders.base import ResourceEncoder
from resource_loader.encoders.data_uri import (
    DataUriEncoder,
    create_data_uri,
    encode_base64,
)

__all__ = [
    "ResourceEncoder",
    "DataUriEncoder",
    "create_data_uri",
    "encode_base64",
]
