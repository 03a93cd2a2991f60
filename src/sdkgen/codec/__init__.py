# Copyright 2026 Sdkgen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Runtime validation of values against compiled type tables."""

from sdkgen.codec.encode_decode import CodecError, TypeTable, decode, encode

__all__ = [
    "encode",
    "decode",
    "CodecError",
    "TypeTable",
]
