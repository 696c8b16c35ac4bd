"""Identity clustering: similarity graph over indexed faces -> persons.

Every face known to the recognition service is searched against the
collection; each match above the threshold is an edge, and the connected
components of the resulting graph become persons. An edge found from
either direction counts, so the graph is the union of all searches.

A run moves through ``LOADING -> SEARCHING -> CLUSTERING -> PERSISTING ->
DONE`` and replaces all prior person data.
"""

import enum
import logging
from dataclasses import dataclass, field

import duckdb

from photo_space_faces.clustering.person_repository import replace_persons
from photo_space_faces.clustering.union_find import UnionFind
from photo_space_faces.config import MATCH_THRESHOLD, MAX_SEARCH_RESULTS, REKOGNITION_COLLECTION_ID
from photo_space_faces.indexing.face_repository import list_clusterable_faces
from photo_space_faces.indexing.recognition import (
    CollectionNotFoundError,
    RecognitionServiceError,
    RekognitionClient,
)
from photo_space_faces.log import RunLogger, new_run_id

logger = logging.getLogger(__name__)

PROGRESS_EVERY = 20


class ClusteringStage(enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    SEARCHING = "searching"
    CLUSTERING = "clustering"
    PERSISTING = "persisting"
    DONE = "done"


class FaceIndex:
    """Bidirectional lookup between external face ids and dense indices.

    Index ``i`` is the i-th loaded face; ``face_ids[i]`` is its row id. Rows
    sharing an external id resolve to the first of them.
    """

    def __init__(self, faces: list[tuple[int, str]]) -> None:
        self.face_ids = [face_id for face_id, _ in faces]
        self.external_ids = [external_id for _, external_id in faces]
        self._by_external: dict[str, int] = {}
        for i, external_id in enumerate(self.external_ids):
            self._by_external.setdefault(external_id, i)

    def __len__(self) -> int:
        return len(self.face_ids)

    def index_of(self, external_id: str) -> int | None:
        return self._by_external.get(external_id)

    def duplicates(self) -> list[tuple[int, int]]:
        """``(i, first)`` pairs for rows whose external id was seen before."""
        return [
            (i, self._by_external[external_id])
            for i, external_id in enumerate(self.external_ids)
            if self._by_external[external_id] != i
        ]


@dataclass
class ClusteringResult:
    """Summary of one clustering run."""

    run_id: str
    faces: int
    searches_failed: int
    merges: int
    clusters: list[list[int]] = field(default_factory=list)
    person_ids: list[int] = field(default_factory=list)

    @property
    def persons(self) -> int:
        return len(self.clusters)

    @property
    def singletons(self) -> int:
        return sum(1 for cluster in self.clusters if len(cluster) == 1)


class ClusteringEngine:
    """Group indexed faces into persons via Rekognition similarity search."""

    def __init__(
        self,
        recognition: RekognitionClient,
        collection_id: str = REKOGNITION_COLLECTION_ID,
        threshold: float = MATCH_THRESHOLD,
        max_results: int = MAX_SEARCH_RESULTS,
    ) -> None:
        self.recognition = recognition
        self.collection_id = collection_id
        self.threshold = threshold
        self.max_results = max_results
        self.stage = ClusteringStage.IDLE

    def run(self, conn: duckdb.DuckDBPyConnection) -> ClusteringResult:
        """Re-derive all persons from the faces in ``conn``.

        Raises:
            CollectionNotFoundError: the collection is missing. Nothing is
                written in that case.
        """
        log = RunLogger(logger, new_run_id())

        self._enter(ClusteringStage.LOADING, log)
        index = FaceIndex(list_clusterable_faces(conn))
        result = ClusteringResult(run_id=log.run_id, faces=len(index), searches_failed=0, merges=0)
        if not index:
            log.warning("No indexed faces in database. Run 'face-index run' first.")
            self._enter(ClusteringStage.DONE, log)
            return result
        log.info("Loaded %d faces.", len(index))
        self.recognition.require_collection(self.collection_id)

        self._enter(ClusteringStage.SEARCHING, log)
        log.info("Searching for matches (threshold=%s)...", self.threshold)
        uf = UnionFind(len(index))
        for i, first in index.duplicates():
            uf.union(first, i)
        for i, external_id in enumerate(index.external_ids):
            neighbours = self._neighbours(index, external_id, log)
            if neighbours is None:
                result.searches_failed += 1
                neighbours = []
            for j in neighbours:
                if uf.union(i, j):
                    result.merges += 1
            if (i + 1) % PROGRESS_EVERY == 0:
                log.info("Searched %d/%d...", i + 1, len(index))

        self._enter(ClusteringStage.CLUSTERING, log)
        result.clusters = [
            [index.face_ids[member] for member in members]
            for members in uf.components().values()
        ]
        log.info("Found %d clusters.", len(result.clusters))

        self._enter(ClusteringStage.PERSISTING, log)
        result.person_ids = replace_persons(conn, result.clusters)
        for n, (person_id, cluster) in enumerate(zip(result.person_ids, result.clusters)):
            log.debug("cluster_%d: %d face(s) -> person %d", n, len(cluster), person_id)

        self._enter(ClusteringStage.DONE, log)
        log.info("Total persons: %d", result.persons)
        if result.singletons:
            log.info(
                "%d person(s) with only 1 face - may be unique or false detections",
                result.singletons,
            )
        if result.searches_failed:
            log.warning("%d search(es) failed; some edges may be missing.", result.searches_failed)
        return result

    def _neighbours(
        self, index: FaceIndex, external_id: str, log: RunLogger
    ) -> list[int] | None:
        """Dense indices of the known faces similar to ``external_id``.

        Returns None when the search failed.
        """
        try:
            matches = self.recognition.search_faces(
                self.collection_id, external_id, self.threshold, self.max_results
            )
        except CollectionNotFoundError:
            # a single face id the service no longer knows also reports "not found"
            if not self.recognition.collection_exists(self.collection_id):
                raise
            log.error("Face %s not found in collection", external_id)
            return None
        except RecognitionServiceError as e:
            log.error("Error searching face %s: %s", external_id, e)
            return None

        neighbours = []
        for matched_id, _similarity in matches:
            j = index.index_of(matched_id)
            if j is not None:
                neighbours.append(j)
        return neighbours

    def _enter(self, stage: ClusteringStage, log: RunLogger) -> None:
        self.stage = stage
        log.debug("stage -> %s", stage.value)
