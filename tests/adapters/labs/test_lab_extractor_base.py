from __future__ import annotations

import pytest

from factweave.adapters.labs import LabExtractor


def test_lab_extractor_requires_mapping_step() -> None:
    class Incomplete(LabExtractor):
        importer_id = "incomplete_lab"

    with pytest.raises(TypeError):
        Incomplete()  # type: ignore[abstract]
