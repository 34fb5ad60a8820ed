"""nblast — archived NBLAST matrices and their incremental update.

Data source: <storage_root>/hemibrain_nblast/*.csv on the hemibrain drive.
"""

from .merge import (
    average_directional_scores,
    strip_mirror_suffix,
    collapse_matrix_by_names,
    clamp_scores,
    round_scores,
    symmetrize,
    merge_into_archive,
    merge_nblast,
)
from .archive import NBLAST_FILES, hemibrain_nblast, save_nblast
from .update import flywire_nblast_update
