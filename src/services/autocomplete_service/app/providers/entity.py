import json
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from sqlalchemy import Enum as SqlEnum
from sqlalchemy import String, and_, case, cast, func, inspect as sa_inspect, or_, select
from sqlalchemy.exc import NoInspectionAvailable, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Mapper, aliased, contains_eager
from tenacity import before_log, retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from autocomplete_common.exceptions import ConfigurationError, UnsupportedOptionError
from autocomplete_common.monitoring import db_timer

from ..dtos.item_dto import AutocompleteItem
from .base import ChipProvider, class_token

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], AsyncSession]

PREFERRED_LABEL_COLUMNS = ("name", "title", "label")

_NOT_COERCIBLE = object()


class EntityProvider(ChipProvider):
    """
    Searches a mapped SQLAlchemy entity.

    ``choice_label`` and ``choice_value`` are attribute paths: either a column
    of the entity ("title") or a column one many-to-one association away
    ("category.name"), which is resolved with an outer join. Without a label
    path a text column is detected from the mapping (name, title, label, else
    the first string column); without any, the label is ``str(entity)``.
    Without a value path the id is the primary key.

    Only string paths are accepted: callables cannot be carried from render
    time to the search request.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        entity_class: type,
        name: Optional[str] = None,
        choice_label: Optional[str] = None,
        choice_value: Optional[str] = None,
    ):
        for option, value in (("choice_label", choice_label), ("choice_value", choice_value)):
            if value is not None and not isinstance(value, str):
                raise UnsupportedOptionError(
                    f'Entity "{class_token(entity_class)}" with autocomplete does not support a callable "{option}" '
                    "because it cannot be sent to the AJAX search endpoint. "
                    'Use a string property path (e.g. "name") or register a custom provider instead.'
                )

        try:
            mapper = sa_inspect(entity_class)
        except NoInspectionAvailable as exc:
            raise ConfigurationError(f'"{entity_class!r}" is not a mapped entity class.') from exc
        if not isinstance(mapper, Mapper):
            raise ConfigurationError(f'"{entity_class!r}" is not a mapped entity class.')

        self._session_factory = session_factory
        self._mapper = mapper
        self.entity_class = entity_class
        self.name = name or f"entity.{class_token(entity_class)}"
        self.choice_label = choice_label or None
        self.choice_value = choice_value or None

        for path in (self.choice_label, self.choice_value):
            if path is not None:
                self._validate_path(path)

        self._label_path = self.choice_label or self._detect_label_path()

    @property
    def label_path(self) -> Optional[str]:
        """The path used for filtering and ordering, configured or detected."""
        return self._label_path

    async def search(self, query: str, limit: int, selected: Sequence[str]) -> List[AutocompleteItem]:
        if limit <= 0:
            return []

        stmt = self.build_search_statement(query, limit, selected)
        entities = await self._fetch(stmt, "entity_search")

        items = [item for item in (self._normalize(entity) for entity in entities) if item is not None]
        if not self._has_single_value_column():
            # Composite keys cannot be excluded in SQL.
            excluded = {str(value) for value in selected}
            items = [item for item in items if item.id not in excluded]
        return items[:limit]

    async def get(self, id: str) -> Optional[AutocompleteItem]:
        stmt = self.build_get_statement(id)
        if stmt is None:
            return None

        entities = await self._fetch(stmt, "entity_get")
        return self._normalize(entities[0]) if entities else None

    def build_search_statement(self, query: str, limit: int, selected: Sequence[str]):
        stmt, joins = self._base_statement()
        stmt, label_expr = self._label_column(stmt, joins)
        stmt, value_expr = self._value_column(stmt, joins)

        needle = (query or "").strip().lower()
        if needle:
            conditions = []
            if label_expr is not None:
                conditions.append(func.lower(label_expr).contains(needle, autoescape=True))
            if value_expr is not None:
                conditions.append(func.lower(cast(value_expr, String)).contains(needle, autoescape=True))
            if conditions:
                stmt = stmt.where(or_(*conditions))

        if self.choice_value is not None and value_expr is not None:
            stmt = stmt.where(value_expr.is_not(None))

        if selected and value_expr is not None:
            excluded = [
                value for value in (self._coerce(value_expr, raw) for raw in selected)
                if value is not _NOT_COERCIBLE
            ]
            if excluded:
                stmt = stmt.where(value_expr.not_in(excluded))

        ordering = []
        if label_expr is not None:
            if needle:
                ordering.append(case((func.lower(label_expr).startswith(needle, autoescape=True), 0), else_=1))
            ordering.append(func.lower(label_expr))
        ordering.extend(self._primary_key_columns())

        fetch = limit if value_expr is not None else limit + len(selected)
        return stmt.order_by(*ordering).limit(fetch)

    def build_get_statement(self, id: str):
        stmt, joins = self._base_statement()
        stmt, _ = self._label_column(stmt, joins)
        stmt, value_expr = self._value_column(stmt, joins)

        if value_expr is not None:
            value = self._coerce(value_expr, id)
            if value is _NOT_COERCIBLE:
                return None
            return stmt.where(value_expr == value).limit(1)

        # Composite primary key, serialized as a JSON list.
        try:
            parts = json.loads(id)
        except ValueError:
            return None
        columns = self._primary_key_columns()
        if not isinstance(parts, list) or len(parts) != len(columns):
            return None
        values = [self._coerce(column, str(part)) for column, part in zip(columns, parts)]
        if any(value is _NOT_COERCIBLE for value in values):
            return None
        return stmt.where(and_(*[column == value for column, value in zip(columns, values)])).limit(1)

    @retry(
        wait=wait_fixed(0.1),
        stop=stop_after_attempt(3),
        before=before_log(logger, logging.DEBUG),
        retry=retry_if_exception_type(OperationalError),
        reraise=True,
    )
    async def _fetch(self, stmt, operation: str) -> List[Any]:
        async with self._session_factory() as session:
            with db_timer(operation, repository=self.entity_class.__name__):
                result = await session.execute(stmt)
            entities = result.scalars().unique().all()
        logger.debug(
            "Entity provider query returned rows.",
            extra={"provider": self.name, "operation": operation, "rows": len(entities)},
        )
        return list(entities)

    def _base_statement(self) -> Tuple[Any, Dict[str, Any]]:
        return select(self.entity_class), {}

    def _label_column(self, stmt, joins):
        if self._label_path is None:
            return stmt, None
        return self._resolve_path(stmt, joins, self._label_path)

    def _value_column(self, stmt, joins):
        if self.choice_value is not None:
            return self._resolve_path(stmt, joins, self.choice_value)
        columns = self._primary_key_columns()
        return stmt, (columns[0] if len(columns) == 1 else None)

    def _resolve_path(self, stmt, joins: Dict[str, Any], path: str):
        """
        "title" -> Entity.title
        "category.name" -> outer joins Entity.category as "e_category" and
        returns e_category.name; the join also populates the relationship.
        """
        parts = path.split(".")
        if len(parts) == 1:
            return stmt, getattr(self.entity_class, parts[0])

        association, field = parts
        if association not in joins:
            relationship = self._mapper.relationships[association]
            target = aliased(relationship.mapper.class_, name=f"e_{association}")
            attribute = getattr(self.entity_class, association)
            stmt = stmt.outerjoin(attribute.of_type(target)).options(
                contains_eager(attribute.of_type(target))
            )
            joins[association] = target
        return stmt, getattr(joins[association], field)

    def _validate_path(self, path: str) -> None:
        parts = path.split(".")
        if len(parts) == 1:
            if parts[0] not in self._mapper.column_attrs:
                raise ConfigurationError(
                    f'"{parts[0]}" is not a column of entity "{class_token(self.entity_class)}".'
                )
            return

        if len(parts) > 2:
            raise UnsupportedOptionError(
                f'Property path "{path}" traverses more than one association; only "association.field" is supported.'
            )

        association, field = parts
        if association not in self._mapper.relationships:
            raise ConfigurationError(
                f'"{association}" is not an association of entity "{class_token(self.entity_class)}".'
            )
        relationship = self._mapper.relationships[association]
        if relationship.uselist:
            raise UnsupportedOptionError(
                f'Property path "{path}" goes through a collection; only many-to-one associations are supported.'
            )
        if field not in relationship.mapper.column_attrs:
            raise ConfigurationError(
                f'"{field}" is not a column of "{class_token(relationship.mapper.class_)}".'
            )

    def _detect_label_path(self) -> Optional[str]:
        string_columns = [
            prop.key
            for prop in self._mapper.column_attrs
            if isinstance(prop.columns[0].type, String) and not isinstance(prop.columns[0].type, SqlEnum)
        ]
        for preferred in PREFERRED_LABEL_COLUMNS:
            if preferred in string_columns:
                return preferred
        return string_columns[0] if string_columns else None

    def _has_single_value_column(self) -> bool:
        return self.choice_value is not None or len(self._mapper.primary_key) == 1

    def _primary_key_columns(self) -> List[Any]:
        return [
            getattr(self.entity_class, self._mapper.get_property_by_column(column).key)
            for column in self._mapper.primary_key
        ]

    @staticmethod
    def _coerce(column_expr, raw: str):
        try:
            python_type = column_expr.expression.type.python_type
        except NotImplementedError:
            return raw
        if python_type is str:
            return raw
        try:
            return python_type(raw)
        except (TypeError, ValueError):
            return _NOT_COERCIBLE

    def _normalize(self, entity: Any) -> Optional[AutocompleteItem]:
        value = self._read_value(entity)
        if value is None:
            return None
        return AutocompleteItem(id=value, label=self._read_label(entity))

    def _read_label(self, entity: Any) -> str:
        if self._label_path is not None:
            value = _read_path(entity, self._label_path)
            return "" if value is None else str(value)
        return str(entity)

    def _read_value(self, entity: Any) -> Optional[str]:
        """
        The configured value path, or the primary key. A row whose configured
        value is empty has no id and is not offered.
        """
        if self.choice_value is not None:
            value = _read_path(entity, self.choice_value)
            if value is None or value == "":
                return None
            return str(value)

        identity = self._mapper.primary_key_from_instance(entity)
        if len(identity) == 1:
            return str(identity[0])
        return json.dumps([str(part) for part in identity])


def _read_path(obj: Any, path: str) -> Any:
    current = obj
    for part in path.split("."):
        if current is None:
            return None
        current = getattr(current, part, None)
    return current
