"""Tests for adding skeletonised FlyWire neurons to the archive."""

import pandas as pd
import pytest

navis = pytest.importorskip("navis")

from hemibrainpy.config import ArchiveConfig
from hemibrainpy.neurons.archive import (
    archive_file_name,
    flywire_neurons,
    neuron_archive_dir,
)
from hemibrainpy.neurons.update import flywire_neurons_update


def _tree(id):
    # Y-shaped skeleton whose branch point sits at x == id
    table = pd.DataFrame(
        [(1, -1, 0, 0, 0), (2, 1, id, 0, 0), (3, 2, id + 1, 1, 0), (4, 2, id + 2, -1, 0)],
        columns=["node_id", "parent_id", "x", "y", "z"],
    )
    table["radius"] = 1.0
    return navis.TreeNeuron(table, id=id)


def skeletonize(ids):
    return navis.NeuronList([_tree(int(i)) for i in ids])


class MemoryStore:
    """Archive reader/writer that keeps skeletons in memory."""

    def __init__(self):
        self.files = {}

    def write(self, neurons, path):
        path.write_text("")
        self.files[path.name.lstrip(".")] = {str(n.id): n for n in neurons}

    def read(self, path, ids):
        stored = self.files[path.name]
        return [stored[str(i)] for i in ids if str(i) in stored]


class Recorder:
    def __init__(self):
        self.calls = []

    def xform(self, x, source, target):
        self.calls.append(("xform", source, target))
        return x

    def mirror(self, x, template):
        self.calls.append(("mirror", template))
        return x


@pytest.fixture
def config(tmp_path):
    return ArchiveConfig(storage_root=tmp_path)


@pytest.fixture
def store():
    return MemoryStore()


def _update(ids, config, store, **kwargs):
    return flywire_neurons_update(ids, config, skeletonizer=skeletonize,
                                  reader=store.read, writer=store.write, **kwargs)


class TestFlywireNeuronsUpdate:
    def test_creates_archive(self, config, store):
        path = _update([1, 2], config, store)
        assert path == neuron_archive_dir(config, "FlyWire") / archive_file_name("FlyWire")
        archive = flywire_neurons(config, reader=store.read)
        assert archive.ids == ["1", "2"]
        assert archive.meta.loc["2", "flywire_xyz"] == "2;0;0"

    def test_new_neurons_replace_archived(self, config, store):
        _update([1, 2], config, store)
        _update([2, 3], config, store)
        archive = flywire_neurons(config, reader=store.read)
        assert archive.ids == ["2", "3", "1"]
        assert [n.id for n in archive.load_all()] == [2, 3, 1]

    def test_transformed_into_target_brain(self, config, store):
        rec = Recorder()
        _update([5], config, store, brain="JRCFIB2018F",
                xform=rec.xform, mirror_fn=rec.mirror)
        assert rec.calls == [("xform", "FAFB14", "JRCFIB2018F")]
        assert flywire_neurons(config, brain="JRCFIB2018F", reader=store.read).ids == ["5"]

    def test_mirrored_archive_is_separate(self, config, store):
        rec = Recorder()
        path = _update([5], config, store, brain="JRCFIB2018F", mirror=True,
                       xform=rec.xform, mirror_fn=rec.mirror)
        assert path.name == "flywire_neurons_JRCFIB2018F_mirrored.parquet"
        assert rec.calls == [("xform", "FAFB14", "JFRC2"), ("mirror", "JFRC2"),
                             ("xform", "JFRC2", "JRCFIB2018F")]
        assert flywire_neurons(config, brain="JRCFIB2018F", reader=store.read) is None

    def test_fafb_is_archived_as_flywire(self, config, store):
        rec = Recorder()
        path = _update([7], config, store, brain="FAFB",
                       xform=rec.xform, mirror_fn=rec.mirror)
        assert path == neuron_archive_dir(config, "FlyWire") / archive_file_name("FlyWire")
        assert rec.calls == []
        assert flywire_neurons(config, brain="FAFB", reader=store.read).ids == ["7"]
        _update([8], config, store, brain="FAFB")
        assert flywire_neurons(config, brain="FlyWire", reader=store.read).ids == ["8", "7"]

    def test_empty_ids_raise(self, config, store):
        with pytest.raises(ValueError, match="No FlyWire ids"):
            _update([], config, store)

    def test_raw_hemibrain_cannot_be_updated(self, config, store):
        with pytest.raises(ValueError, match="Cannot archive"):
            _update([1], config, store, brain="JRCFIB2018Fraw")
