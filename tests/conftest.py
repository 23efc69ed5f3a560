from pathlib import Path

import pytest
from PIL import Image

from respond.config import PipelineConfig


def make_image(path: Path, size=(1600, 800), mode="RGB", color=(200, 80, 40), **save_kwargs) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    if mode == "RGBA" and len(color) == 3:
        color = color + (128,)
    Image.new(mode, size, color).save(path, **save_kwargs)
    return path


@pytest.fixture
def image_factory(tmp_path):
    def factory(name="photo.jpg", size=(1600, 800), **kwargs):
        return make_image(tmp_path / "src" / name, size=size, **kwargs)
    return factory


@pytest.fixture
def out_dir(tmp_path):
    d = tmp_path / "out"
    d.mkdir()
    return d


@pytest.fixture
def jpg_webp():
    return PipelineConfig(formats=("jpg", "webp"))
