import pytest

from gridmosaic import MosaicSession, MosaicSQL, SessionConf
from gridmosaic.config import MOSAIC_GEOMETRY_API, MOSAIC_INDEX_SYSTEM
from gridmosaic.engine import SessionExtensions
from gridmosaic.engine import session as session_module


def test_conf_get_set():
    conf = SessionConf({"a": "1"})
    assert conf.get("a") == "1"
    assert conf.get("b", None) is None
    with pytest.raises(KeyError):
        conf.get("b")
    conf.set("b", 2)
    assert conf.get("b") == "2"
    conf.unset("a")
    assert not conf.contains("a")
    assert conf.as_dict() == {"b": "2"}


def test_extensions_run_in_order():
    calls = []

    def extension(name):
        def inject(ext: SessionExtensions):
            def build(session):
                calls.append(name)
                return lambda relation: calls.append(f"{name}:rule")
            ext.inject_check_rule(build)
        return inject

    session = (
        MosaicSession.builder()
        .with_extensions(extension("first"))
        .with_extensions(extension("second"))
        .get_or_create()
    )
    assert calls == ["first", "second"]
    session.sql("SELECT 1")
    assert calls[-2:] == ["first:rule", "second:rule"]
    session.close()


def test_failing_extension_closes_connection():
    opened = []

    def failing(ext: SessionExtensions):
        def build(session):
            opened.append(session)
            raise RuntimeError("boom")
        ext.inject_check_rule(build)

    with pytest.raises(RuntimeError):
        MosaicSession.builder().with_extensions(failing).get_or_create()
    with pytest.raises(Exception):
        opened[0].conn.execute("SELECT 1")


def test_file_database(tmp_path):
    path = tmp_path / "mosaic.duckdb"
    with MosaicSession.builder().database(path).get_or_create() as session:
        session.sql("CREATE TABLE t AS SELECT 1 AS x")
    with MosaicSession.builder().database(path, read_only=True).get_or_create() as session:
        assert session.sql("SELECT x FROM t").fetchone() == (1,)


def test_builder_reads_environment(monkeypatch):
    monkeypatch.setenv("MOSAIC_INDEX_SYSTEM", "BNG")
    with MosaicSession.builder().with_extensions(MosaicSQL()).get_or_create() as session:
        assert session.conf.get(MOSAIC_INDEX_SYSTEM) == "BNG"
        cell = session.sql("SELECT grid_format(point_index(st_point(530500, 180500), 3))").fetchone()[0]
        assert cell == "TQ3080"


def test_builder_reads_config_file(monkeypatch, tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("mosaic:\n  index_system: CUSTOM(0,100,0,100,2,100,100)\n  geometry_api: JTS\n")
    monkeypatch.setattr(session_module, "CONFIG_PATH", path)

    builder = MosaicSession.builder()
    with builder.get_or_create() as session:
        assert session.conf.get(MOSAIC_INDEX_SYSTEM) == "CUSTOM(0,100,0,100,2,100,100)"
        assert session.conf.get(MOSAIC_GEOMETRY_API) == "JTS"

    # Explicit builder settings win over the file
    with MosaicSession.builder().config(MOSAIC_GEOMETRY_API, "ESRI").get_or_create() as session:
        assert session.conf.get(MOSAIC_GEOMETRY_API) == "ESRI"
