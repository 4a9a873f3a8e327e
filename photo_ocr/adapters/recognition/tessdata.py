"""
Bundled Tesseract model data.

The engine needs <data_dir>/tessdata/<lang>.traineddata on a writable path.
copy_tessdata_if_needed() copies bundled files there once; existing files are
left alone so it is safe to call on every startup.
"""
import shutil
from pathlib import Path

TESSDATA = "tessdata"


def copy_tessdata_if_needed(assets_dir, data_dir) -> list[str]:
    src = Path(assets_dir) / TESSDATA
    dest = Path(data_dir) / TESSDATA
    dest.mkdir(parents=True, exist_ok=True)
    if not src.is_dir():
        return []

    copied = []
    for item in sorted(src.iterdir()):
        if not item.is_file():
            continue
        target = dest / item.name
        if target.exists():
            continue
        shutil.copyfile(item, target)
        copied.append(item.name)
    return copied


def model_path(data_dir, language: str) -> Path:
    return Path(data_dir) / TESSDATA / f"{language}.traineddata"
