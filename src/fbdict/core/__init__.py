"""Core storage components.

Architecture Overview
---------------------
1. **Configuration** (config.py):
   - Environment-based configuration using Pydantic Settings
   - All settings prefixed with FBDICT_ in .env files

2. **Codecs** (codecs.py):
   - ``Codec`` protocol plus model, image and raw-bytes implementations

3. **Container** (file_backed_dict.py):
   - ``FileBackedDictionary``: write-through mapping, one file per entry

4. **Errors** (errors.py) and **logging setup** (logging_setup.py)
"""

from fbdict.core.codecs import BytesCodec, Codec, ImageCodable, ImageCodec, ModelCodec
from fbdict.core.config import FBDictConfig, config
from fbdict.core.file_backed_dict import ChangeEvent, FileBackedDictionary

__all__ = [
    "BytesCodec",
    "ChangeEvent",
    "Codec",
    "FBDictConfig",
    "FileBackedDictionary",
    "ImageCodable",
    "ImageCodec",
    "ModelCodec",
    "config",
]
