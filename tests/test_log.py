import logging

from photo_space_faces.log import RunLogger, new_run_id


def test_run_logger_prefixes_run_id(caplog):
    log = RunLogger(logging.getLogger("photo_space_faces.test"), "abc12345")
    with caplog.at_level(logging.INFO, logger="photo_space_faces.test"):
        log.info("Loaded %d faces.", 3)
    assert caplog.messages == ["run=abc12345 Loaded 3 faces."]


def test_new_run_id_is_short_and_unique():
    ids = {new_run_id() for _ in range(10)}
    assert len(ids) == 10
    assert all(len(run_id) == 8 for run_id in ids)
