"""
DuckDB host session with configuration and startup extensions.

A MosaicSession wraps a DuckDB connection together with its key/value
configuration. Extensions are callables receiving a SessionExtensions hook
at session creation; the check rules they inject are built right after the
connection has been opened, which is where function registration happens:

    session = (
        MosaicSession.builder()
        .config("mosaic.index.system", "H3")
        .config("mosaic.geometry.api", "JTS")
        .with_extensions(MosaicSQL())
        .get_or_create()
    )
    session.sql("SELECT st_area('POLYGON ((0 0, 1 0, 1 1, 0 0))')").fetchone()
"""

import logging
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Union

import duckdb

from ..config import CONFIG_PATH, DEFAULT_SETTINGS, load_config, session_settings

logger = logging.getLogger(__name__)

_MISSING = object()

CheckRule = Callable[[duckdb.DuckDBPyRelation], None]
RuleBuilder = Callable[["MosaicSession"], CheckRule]
Extension = Callable[["SessionExtensions"], None]


class SessionConf:
    """String key/value session configuration."""

    def __init__(self, settings: Optional[Dict[str, str]] = None):
        self._settings: Dict[str, str] = dict(settings or {})

    def get(self, key: str, default=_MISSING) -> str:
        """
        Value of a setting.

        Raises:
            KeyError: If the key is not set and no default is given
        """
        if key in self._settings:
            return self._settings[key]
        if default is _MISSING:
            raise KeyError(f"Session setting not found: {key}")
        return default

    def set(self, key: str, value) -> None:
        self._settings[key] = str(value)

    def unset(self, key: str) -> None:
        self._settings.pop(key, None)

    def contains(self, key: str) -> bool:
        return key in self._settings

    def as_dict(self) -> Dict[str, str]:
        return dict(self._settings)

    def __iter__(self) -> Iterator[str]:
        return iter(self._settings)


class SessionExtensions:
    """Hook handed to extensions at session creation."""

    def __init__(self):
        self._check_rule_builders: List[RuleBuilder] = []

    def inject_check_rule(self, builder: RuleBuilder) -> None:
        """Register a builder that is invoked with the new session."""
        self._check_rule_builders.append(builder)

    def build_check_rules(self, session: "MosaicSession") -> List[CheckRule]:
        return [builder(session) for builder in self._check_rule_builders]


class MosaicSession:
    """DuckDB connection plus configuration and registered functions.

    Attributes:
        conn: DuckDB Connection (direkt nutzbar fuer Raw SQL)
        conf: SessionConf
    """

    def __init__(self, conn: duckdb.DuckDBPyConnection, conf: Optional[SessionConf] = None):
        self.conn = conn
        self.conf = conf or SessionConf(DEFAULT_SETTINGS)
        self.registered_functions: set[str] = set()
        self._check_rules: List[CheckRule] = []

    @staticmethod
    def builder() -> "SessionBuilder":
        return SessionBuilder()

    def close(self):
        """Schliesst die Datenbankverbindung."""
        self.conn.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def sql(self, query: str) -> duckdb.DuckDBPyRelation:
        """Run a query through the injected check rules."""
        relation = self.conn.sql(query)
        if relation is not None:
            for rule in self._check_rules:
                rule(relation)
        return relation

    def execute(self, query: str, parameters=None) -> duckdb.DuckDBPyConnection:
        return self.conn.execute(query, parameters)

    def register_function(self, name: str, function: Callable, parameters, return_type) -> None:
        """Create (or replace) a scalar Python function in the catalog."""
        if name in self.registered_functions:
            self.conn.remove_function(name)
            self.registered_functions.discard(name)
        self.conn.create_function(name, function, parameters, return_type)
        self.registered_functions.add(name)


class SessionBuilder:
    """Builder for MosaicSession.

    Settings start from config.yaml (section ``mosaic``) and the
    MOSAIC_* environment variables; config() calls override both.
    """

    def __init__(self):
        self._database: Union[str, Path] = ":memory:"
        self._read_only = False
        self._settings: Dict[str, str] = session_settings(load_config(CONFIG_PATH))
        self._extensions: List[Extension] = []

    def database(self, path: Union[str, Path], read_only: bool = False) -> "SessionBuilder":
        self._database = path
        self._read_only = read_only
        return self

    def config(self, key: str, value) -> "SessionBuilder":
        self._settings[key] = str(value)
        return self

    def config_all(self, settings: Dict[str, str]) -> "SessionBuilder":
        for key, value in settings.items():
            self.config(key, value)
        return self

    def with_extensions(self, extension: Extension) -> "SessionBuilder":
        self._extensions.append(extension)
        return self

    def get_or_create(self) -> MosaicSession:
        """
        Open the connection and run the extensions' startup rules.

        If a rule fails the connection is closed and the error propagates.
        """
        conn = duckdb.connect(str(self._database), read_only=self._read_only)
        session = MosaicSession(conn, SessionConf(self._settings))

        hooks = SessionExtensions()
        for extension in self._extensions:
            extension(hooks)

        try:
            session._check_rules = hooks.build_check_rules(session)
        except Exception:
            conn.close()
            raise

        logger.debug(f"Session created on {self._database} with {len(session.registered_functions)} functions")
        return session
