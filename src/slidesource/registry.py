"""Module providing slide source registry class.

Slide source definitions are kept in an SQLite database, which is accessed
via the SQLAlchemy object relational mapper. The registry is read by the
aggregator, which only consults enabled sources and records when each source
has last been checked. Administrative functions to create, edit and delete
sources are provided for the command line interface.
"""

import logging

from datetime import datetime, timezone
from types import MappingProxyType
from sqlalchemy import create_engine, event, Column, DateTime, ForeignKey, Integer, String, Boolean
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import backref, declarative_base, relationship, sessionmaker, scoped_session

from .common import ConfigError, format_arguments, parse_arguments


# Install listener for connection events to automatically enable foreign key
# constraint checking by SQLite.
@event.listens_for(Engine, "connect")
def set_sqlite_pragma(conn, *largs):
    """Enable foreign key constraint checking in SQLite."""
    cursor = conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


Base = declarative_base()


class SourceModule(Base):
    """Database model for slide source modules.

    Properties:
        id(Integer): Numerical unique identifier. Automatically generated.
        name(String(80)): Human-readable name of the module. Sources are
            ordered by module name.
        module(String(80)): Identifier of the slide source implementation.
        description(String(255)): Description shown to administrators.
    """

    __tablename__ = "source_modules"
    id = Column(Integer, primary_key=True)
    name = Column(String(80), unique=True, nullable=False)
    module = Column(String(80), unique=True, nullable=False)
    description = Column(String(255))


class SlideSourceEntry(Base):
    """Database model for configured slide sources.

    Properties:
        id(Integer): Numerical unique identifier. Automatically generated.
        module_id(Integer): Identifier of the source module.
        args(String(2048)): Source arguments encoded as "key=value;..."
        notes(String(255)): Human-readable notes.
        enabled(Boolean): True if slides shall be generated from the source.
        last_checked(DateTime): Time (UTC) of the last successful fetch.
    """

    __tablename__ = "slide_sources"
    id = Column(Integer, primary_key=True)
    module_id = Column(Integer, ForeignKey('source_modules.id', ondelete="CASCADE"), nullable=False)
    args = Column(String(2048), nullable=False, default="")
    notes = Column(String(255))
    enabled = Column(Boolean, nullable=False, default=True)
    last_checked = Column(DateTime)
    source_module = relationship("SourceModule", backref=backref("sources", lazy="dynamic"))


class SourceConfig:
    """Configured slide source.

    Read-only snapshot of a registry entry, detached from the database
    session.

    Properties:
        id (int): Unique identifier of the source.
        module (str): Identifier of the slide source implementation.
        name (str): Human-readable name of the source module.
        arguments (mapping): Source arguments. Read-only.
        enabled (bool): True if the source is enabled.
        last_checked (datetime): Time (UTC) of the last successful fetch or
            None.
        notes (str): Human-readable notes.
    """

    __slots__ = ('_id', '_module', '_name', '_arguments', '_enabled', '_last_checked', '_notes')

    def __init__(self, id, module, arguments, name=None, enabled=True, last_checked=None, notes=None):
        """Initialize slide source configuration instance.

        :param arguments: source arguments. Either a dictionary or an encoded
            argument string.
        :type arguments: dict or str
        """
        if isinstance(arguments, str):
            arguments = parse_arguments(arguments)
        object.__setattr__(self, '_id', id)
        object.__setattr__(self, '_module', module)
        object.__setattr__(self, '_name', name if name is not None else module)
        object.__setattr__(self, '_arguments', MappingProxyType(dict(arguments)))
        object.__setattr__(self, '_enabled', bool(enabled))
        object.__setattr__(self, '_last_checked', last_checked)
        object.__setattr__(self, '_notes', notes)

    def __setattr__(self, name, value):
        raise AttributeError(f"Source configurations are immutable. Cannot set '{name}'.")

    def __repr__(self):
        return f"SourceConfig(id={self._id}, module={self._module!r}, enabled={self._enabled})"

    @classmethod
    def from_entry(cls, entry):
        """Create configuration snapshot from database entry.

        :param entry: database entry
        :type entry: slidesource.registry.SlideSourceEntry
        :rtype: slidesource.SourceConfig
        """
        return cls(entry.id, entry.source_module.module, entry.args, name=entry.source_module.name,
            enabled=entry.enabled, last_checked=entry.last_checked, notes=entry.notes)

    @property
    def id(self):
        return self._id

    @property
    def module(self):
        return self._module

    @property
    def name(self):
        return self._name

    @property
    def arguments(self):
        return self._arguments

    @property
    def enabled(self):
        return self._enabled

    @property
    def last_checked(self):
        return self._last_checked

    @property
    def notes(self):
        return self._notes

    @property
    def identity(self):
        """Return identity of the source used in log and error messages.

        :rtype: str
        """
        return f"{self._module}#{self._id}"


class SourceRegistry:
    """Slide source registry.

    Keeps track of slide source modules and configured slide sources.
    """

    def __init__(self, dbname="sources.sqlite"):
        """Initialize slide source registry.

        :param dbname: Name of database. Default is "sources.sqlite".
        :type dbname: str
        :raises: SQLAlchemyError
        """
        self._dbname = dbname
        self._engine = None
        self._session = None
        try:
            logging.info(f"Registry: Opening slide source database '{dbname}'.")
            # Determine whether we want verbose SQL debugging information.
            echo_flag = False
            if logging.getLogger("sqlalchemy").getEffectiveLevel() <= logging.DEBUG:
                echo_flag = True
            # Create sqlite database engine
            self._engine = create_engine(f"sqlite:///{dbname}", echo=echo_flag)
            # Create tables if they do not exist yet.
            Base.metadata.create_all(self._engine)
            # Open database session
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
            self._scoped_session = scoped_session(self._session_factory)
            self._session = self._scoped_session()
        except SQLAlchemyError as e:
            logging.critical(f"Registry: An error occurred while opening the slide source database '{dbname}': {e}")
            raise

    def __del__(self):
        self.close()

    def close(self):
        """Close database session and dispose engine."""
        try:
            if self._session:
                logging.debug(f"Registry: Closing database session.")
                self._session.close()
                self._session = None
            if self._engine:
                logging.debug(f"Registry: Disposing engine for database '{self._dbname}'.")
                self._engine.dispose()
                self._engine = None
        except SQLAlchemyError as e:
            logging.error(f"Registry: An error occurred while closing the slide source database '{self._dbname}': {e}")

    def _commit(self, action):
        """Commit pending changes. Roll back and raise on failure.

        :param action: description of the change for the log
        :type action: str
        :raises: SQLAlchemyError
        """
        try:
            self._session.commit()
        except SQLAlchemyError as e:
            self._session.rollback()
            logging.error(f"Registry: An error occurred while {action}: {e}")
            raise

    def _module(self, module):
        """Return source module database entry by identifier.

        :raises: ConfigError
        """
        entry = self._session.query(SourceModule).filter(SourceModule.module == module).first()
        if entry is None:
            raise ConfigError(f"There is no source module '{module}'.")
        return entry

    def _entry(self, source_id):
        """Return slide source database entry by identifier.

        :raises: ConfigError
        """
        entry = self._session.get(SlideSourceEntry, source_id)
        if entry is None:
            raise ConfigError(f"There is no slide source with id {source_id}.")
        return entry

    def register_module(self, module, name=None, description=None):
        """Register slide source module.

        Adds the module if it does not exist yet. Updates name and description
        otherwise.

        :param module: identifier of the slide source implementation
        :type module: str
        :param name: human-readable name (default: module identifier)
        :type name: str
        :param description: description (default: None)
        :type description: str
        """
        entry = self._session.query(SourceModule).filter(SourceModule.module == module).first()
        if entry is None:
            logging.info(f"Registry: Adding source module '{module}'.")
            entry = SourceModule(module=module)
            self._session.add(entry)
        entry.name = name if name is not None else module
        if description is not None:
            entry.description = description
        self._commit(f"registering source module '{module}'")

    def list_modules(self):
        """Return registered source modules ordered by name.

        :return: tuples of (module identifier, name, description)
        :rtype: list of tuple
        """
        entries = self._session.query(SourceModule).order_by(SourceModule.name, SourceModule.id).all()
        return [ (entry.module, entry.name, entry.description) for entry in entries ]

    def list_sources(self, enabled_only=False):
        """Return configured slide sources.

        Sources are ordered by module name and source id to keep the order of
        iteration stable.

        :param enabled_only: True if only enabled sources shall be returned
        :type enabled_only: bool
        :rtype: list of slidesource.SourceConfig
        """
        query = self._session.query(SlideSourceEntry).join(SlideSourceEntry.source_module)
        if enabled_only:
            query = query.filter(SlideSourceEntry.enabled == True)
        query = query.order_by(SourceModule.name, SlideSourceEntry.id)
        return [ SourceConfig.from_entry(entry) for entry in query.all() ]

    def list_enabled_sources(self):
        """Return enabled slide sources ordered by module name and id.

        :rtype: list of slidesource.SourceConfig
        """
        return self.list_sources(enabled_only=True)

    def get_source(self, source_id):
        """Return slide source by identifier.

        :rtype: slidesource.SourceConfig
        :raises: ConfigError
        """
        return SourceConfig.from_entry(self._entry(source_id))

    def create_source(self, module, arguments, notes=None, enabled=True):
        """Create slide source.

        :param module: identifier of a registered source module
        :type module: str
        :param arguments: source arguments, either as dictionary or encoded
        :type arguments: dict or str
        :param notes: human-readable notes (default: None)
        :type notes: str
        :param enabled: True if the source shall be enabled (default: True)
        :type enabled: bool
        :return: the new slide source
        :rtype: slidesource.SourceConfig
        :raises: ConfigError
        """
        if isinstance(arguments, str):
            arguments = parse_arguments(arguments)
        entry = SlideSourceEntry(source_module=self._module(module), args=format_arguments(arguments), notes=notes, enabled=enabled)
        self._session.add(entry)
        self._commit(f"creating slide source for module '{module}'")
        logging.info(f"Registry: Created slide source {entry.id} for module '{module}'.")
        return SourceConfig.from_entry(entry)

    def update_source(self, source_id, module=None, arguments=None, notes=None):
        """Update slide source. Only specified values are changed.

        :rtype: slidesource.SourceConfig
        :raises: ConfigError
        """
        entry = self._entry(source_id)
        if module is not None:
            entry.source_module = self._module(module)
        if arguments is not None:
            if isinstance(arguments, str):
                arguments = parse_arguments(arguments)
            entry.args = format_arguments(arguments)
        if notes is not None:
            entry.notes = notes
        self._commit(f"updating slide source {source_id}")
        return SourceConfig.from_entry(entry)

    def set_enabled(self, source_id, enabled):
        """Enable or disable slide source.

        :raises: ConfigError
        """
        entry = self._entry(source_id)
        entry.enabled = bool(enabled)
        self._commit(f"changing the status of slide source {source_id}")
        logging.info(f"Registry: Slide source {source_id} {'enabled' if enabled else 'disabled'}.")

    def delete_source(self, source_id):
        """Delete slide source.

        :raises: ConfigError
        """
        self._session.delete(self._entry(source_id))
        self._commit(f"deleting slide source {source_id}")
        logging.info(f"Registry: Deleted slide source {source_id}.")

    def mark_checked(self, source_id):
        """Record that the slide source has just been checked.

        Failures are logged, but not raised.

        :param source_id: identifier of the slide source
        :type source_id: int
        :return: True if the time has been recorded
        :rtype: bool
        """
        try:
            entry = self._session.get(SlideSourceEntry, source_id)
            if entry is None:
                logging.warning(f"Registry: Cannot mark unknown slide source {source_id} as checked.")
                return False
            # Store as naive UTC time. SQLite does not keep time zones.
            entry.last_checked = datetime.now(timezone.utc).replace(tzinfo=None)
            self._session.commit()
            return True
        except SQLAlchemyError as e:
            self._session.rollback()
            logging.error(f"Registry: An error occurred while marking slide source {source_id} as checked: {e}")
            return False
