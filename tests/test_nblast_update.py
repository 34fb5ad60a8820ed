"""Tests for the incremental NBLAST update, with a stand-in scorer."""

import numpy as np
import pandas as pd
import pytest

navis = pytest.importorskip("navis")

from hemibrainpy.config import ArchiveConfig
from hemibrainpy.nblast.archive import hemibrain_nblast, save_nblast
from hemibrainpy.nblast.update import flywire_nblast_update, with_suffix
from hemibrainpy.neurons.archive import (
    archive_file_name,
    neuron_archive_dir,
    write_neuron_archive,
)


def _tree(id):
    table = pd.DataFrame([(1, -1, 0, 0, 0), (2, 1, 1, 0, 0)],
                         columns=["node_id", "parent_id", "x", "y", "z"])
    table["radius"] = 1.0
    return navis.TreeNeuron(table, id=id)


# Symmetric pair scores: forward and backward agree, so the mean is the value.
SCORES = {
    ("10", "h1"): 0.6, ("10_m", "h1"): 0.2,
    ("10", "h2"): 0.4, ("10_m", "h2"): 0.1,
    ("20", "h1"): -0.7, ("20_m", "h1"): -0.9,
    ("20", "h2"): 0.3, ("20_m", "h2"): 0.25,
    # FlyWire against FlyWire, for the mirror NBLAST
    ("10", "10"): 1.0, ("10_m", "10"): 0.5,
    ("10", "20"): 0.2, ("10_m", "20"): 0.7,
    ("10", "30"): -0.6, ("10_m", "30"): -0.8,
}


def _score(a, b):
    return SCORES.get((a, b), SCORES.get((b, a)))


def scorer(query, target):
    rows = [str(q.id) for q in query]
    cols = [str(t.id) for t in target]
    return pd.DataFrame([[_score(r, c) for c in cols] for r in rows],
                        index=rows, columns=cols)


def identity(neurons):
    return neurons


class Loaders:
    """Query and target loaders; ids in ``unavailable`` cannot be loaded."""

    TARGETS = {
        "hemibrain-flywire": ["h1", "h2"],
        "flywire-mirror": [10, 20, 30],
    }

    def __init__(self, unavailable=()):
        self.calls = []
        self.unavailable = {str(i) for i in unavailable}

    def neurons(self, ids, mirror=False):
        self.calls.append((list(ids), mirror))
        return navis.NeuronList([_tree(int(i)) for i in ids if i not in self.unavailable])

    def targets(self, nblast):
        return navis.NeuronList([_tree(i) for i in self.TARGETS[nblast]])


@pytest.fixture
def config(tmp_path):
    return ArchiveConfig(storage_root=tmp_path)


@pytest.fixture
def archived(config):
    """An archived matrix with a row for 10 to rescore and an untouched row for 30."""
    matrix = pd.DataFrame({"h1": [0.9, 0.1], "h3": [0.8, 0.2]}, index=["10", "30"])
    save_nblast(matrix, "hemibrain-flywire", config)
    return matrix


def _update(config, loaders, ids=None, nblast="hemibrain-flywire"):
    return flywire_nblast_update(ids, nblast=nblast, config=config, scorer=scorer,
                                 dotprops=identity, neuron_loader=loaders.neurons,
                                 target_loader=loaders.targets)


class TestWithSuffix:
    def test_copies_with_new_ids(self):
        original = navis.NeuronList([_tree(10)])
        renamed = with_suffix(original, "_m")
        assert [str(n.id) for n in renamed] == ["10_m"]
        assert original[0].id == 10


class TestFlywireNblastUpdate:
    def test_scores_collapsed_clamped_and_merged(self, config, archived):
        loaders = Loaders()
        merged = _update(config, loaders, ids=[10, 20])

        assert loaders.calls == [(["10", "20"], False), (["10", "20"], True)]
        assert list(merged.index) == ["10", "20", "30"]
        assert list(merged.columns) == ["h1", "h2", "h3"]
        assert merged.loc["10", "h1"] == pytest.approx(0.6)
        assert merged.loc["10", "h2"] == pytest.approx(0.4)
        assert merged.loc["20", "h1"] == pytest.approx(-0.5)
        assert merged.loc["20", "h2"] == pytest.approx(0.3)
        # archived cells without a new score are kept
        assert merged.loc["10", "h3"] == pytest.approx(0.8)
        # untouched neurons keep theirs
        assert merged.loc["30", "h1"] == pytest.approx(0.1)
        assert merged.loc["30", "h3"] == pytest.approx(0.2)

    def test_result_is_saved(self, config, archived):
        merged = _update(config, Loaders(), ids=[10, 20])
        saved = hemibrain_nblast("hemibrain-flywire", config)
        pd.testing.assert_frame_equal(saved, merged, check_dtype=False)

    def test_default_ids_are_unscored_archive_neurons(self, config, archived):
        path = neuron_archive_dir(config, "JRCFIB2018F") / archive_file_name("JRCFIB2018F")
        meta = pd.DataFrame({"flywire_id": ["10", "20", "30"]}, index=["10", "20", "30"])
        write_neuron_archive([_tree(10), _tree(20), _tree(30)], meta, path,
                             writer=lambda neurons, p: p.write_text(""))
        loaders = Loaders()
        merged = _update(config, loaders)

        assert loaders.calls == [(["20"], False), (["20"], True)]
        assert merged.loc["20", "h1"] == pytest.approx(-0.5)
        assert merged.loc["10", "h1"] == pytest.approx(0.9)
        assert merged.loc["10", "h3"] == pytest.approx(0.8)

    def test_first_update_starts_from_empty(self, config):
        merged = _update(config, Loaders(), ids=["10"])
        assert list(merged.index) == ["10"]
        assert merged.loc["10", "h1"] == pytest.approx(0.6)

    def test_flywire_self_nblast_is_not_available(self, config):
        with pytest.raises(NotImplementedError):
            _update(config, Loaders(), ids=[10], nblast="flywire")

    def test_unknown_variant_raises(self, config):
        with pytest.raises(ValueError, match="Unknown NBLAST"):
            _update(config, Loaders(), ids=[10], nblast="fafb")

    def test_nothing_to_update_raises(self, config, archived):
        with pytest.raises(ValueError, match="No FlyWire neurons"):
            _update(config, Loaders(), ids=[])

    def test_config_required(self):
        with pytest.raises(ValueError, match="ArchiveConfig"):
            flywire_nblast_update([10], config=None)

    def test_neurons_that_fail_to_load_keep_their_scores(self, config):
        archive = pd.DataFrame({"h1": [0.9, 0.15], "h3": [0.8, 0.35]}, index=["10", "99"])
        save_nblast(archive, "hemibrain-flywire", config)

        merged = _update(config, Loaders(unavailable=[99]), ids=[10, 99])

        assert list(merged.index) == ["10", "99"]
        assert merged.loc["10", "h1"] == pytest.approx(0.6)
        assert merged.loc["10", "h3"] == pytest.approx(0.8)
        assert merged.loc["99", "h1"] == pytest.approx(0.15)
        assert merged.loc["99", "h3"] == pytest.approx(0.35)
        assert np.isnan(merged.loc["99", "h2"])
        saved = hemibrain_nblast("hemibrain-flywire", config)
        assert saved.loc["99", "h3"] == pytest.approx(0.35)


class TestFlywireMirrorUpdate:
    """FlyWire queries against FlyWire targets, the queries among them."""

    @pytest.fixture
    def mirror_archive(self, config):
        matrix = pd.DataFrame(
            {"10": [0.9, 0.4], "30": [0.1, 1.0], "40": [0.3, 0.6]},
            index=["10", "30"],
        )
        save_nblast(matrix, "flywire-mirror", config)
        return matrix

    def test_mirrored_rows_collapse(self, config, mirror_archive):
        merged = _update(config, Loaders(), ids=[10], nblast="flywire-mirror")
        assert list(merged.index) == ["10", "30"]
        assert not any(str(label).endswith("_m") for label in merged.index)
        assert not any(str(label).endswith("_m") for label in merged.columns)
        assert merged.loc["10", "20"] == pytest.approx(0.7)
        assert merged.loc["10", "30"] == pytest.approx(-0.5)

    def test_own_column_is_recomputed(self, config, mirror_archive):
        merged = _update(config, Loaders(), ids=[10], nblast="flywire-mirror")
        assert merged.loc["10", "10"] == pytest.approx(1.0)
        # the archived column for 10 is dropped, not carried over
        assert np.isnan(merged.loc["30", "10"])

    def test_other_cells_are_kept(self, config, mirror_archive):
        merged = _update(config, Loaders(), ids=[10], nblast="flywire-mirror")
        assert list(merged.columns) == ["10", "20", "30", "40"]
        assert merged.loc["10", "40"] == pytest.approx(0.3)
        assert merged.loc["30", "30"] == pytest.approx(1.0)
        assert merged.loc["30", "40"] == pytest.approx(0.6)
        saved = hemibrain_nblast("flywire-mirror", config)
        assert saved.loc["30", "40"] == pytest.approx(0.6)
