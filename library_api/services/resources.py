"""
Generic Resource Handler

Authors and books expose the same five operations (list, create, show,
update, delete) with the same caching and error rules. Instead of writing
that logic twice, one ResourceHandler is instantiated per resource with
the parts that differ:

- validate: database-backed checks on a request body (e.g. author_id exists)
- query-filter: search columns plus any extra WHERE conditions
- serialize: the Pydantic schemas used for list rows, details and writes

Caching
=======
- List pages: "<plural>:v<N>:...params" for 5 minutes
- Records:    "<name>:<id>:v<M>:fields=..." for 1 hour

N is the resource's list version and M the record's own version. Keys also
carry the list versions of any resource whose data is embedded in the rows
(books embed their author), so a write to that resource invalidates them too.

Usage:
    author_handler = ResourceHandler(
        model=Author,
        name="author",
        plural="authors",
        search_columns=(Author.name, Author.bio),
        ...
    )

    @router.get("")
    def list_authors(request: Request, db: DbSession, params: AuthorFilters, page: Page):
        return author_handler.index(db, params, page, request.url)
"""

import logging
import math
from collections.abc import Callable, Sequence
from typing import Any

from fastapi import HTTPException, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel
from sqlalchemy import ColumnElement, Select, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.interfaces import LoaderOption
from starlette.datastructures import URL

from library_api.config import get_settings
from library_api.database import Base
from library_api.dependencies import parse_fields
from library_api.services.cache import (
    bump_cache_version,
    cache_remember,
    get_cache_version,
    make_cache_key,
)

logger = logging.getLogger(__name__)

# Checks a request body against the database; returns {field: [messages]}
Validator = Callable[[Session, dict[str, Any]], dict[str, list[str]]]
# Extra WHERE conditions derived from list parameters
FilterBuilder = Callable[[Any], list[ColumnElement[bool]]]


# =============================================================================
# Pagination Helpers
# =============================================================================
def last_page_for(total: int, per_page: int) -> int:
    """Number of the last page; an empty result still has page 1."""
    return max(math.ceil(total / per_page), 1)


def build_page_envelope(
    items: list[dict[str, Any]],
    total: int,
    page: int,
    per_page: int,
    url: URL,
) -> dict[str, Any]:
    """
    Wrap a page of rows in the paginated response envelope.

    Links reuse the request URL, so every other query parameter is kept
    and only `page` changes.
    """
    last_page = last_page_for(total, per_page)

    def page_url(number: int) -> str:
        return str(url.include_query_params(page=number))

    return {
        "data": items,
        "current_page": page,
        "last_page": last_page,
        "per_page": per_page,
        "total": total,
        "links": {
            "first": page_url(1),
            "last": page_url(last_page),
            "prev": page_url(page - 1) if page > 1 else None,
            "next": page_url(page + 1) if page < last_page else None,
        },
        "status": status.HTTP_200_OK,
    }


def validation_error(location: str, errors: dict[str, list[str]], values: dict[str, Any]) -> RequestValidationError:
    """Build a RequestValidationError so database checks share the 422 format."""
    return RequestValidationError([
        {
            "type": "value_error",
            "loc": (location, field),
            "msg": message,
            "input": values.get(field),
        }
        for field, messages in errors.items()
        for message in messages
    ])


# =============================================================================
# Resource Handler
# =============================================================================
class ResourceHandler:
    """
    CRUD operations with versioned read-through caching for one model.

    Args:
        model: SQLAlchemy model class
        name: Singular name used in cache keys and messages ("author")
        plural: Name of the list cache counter ("authors")
        search_columns: (primary, secondary) text columns for `search`
        list_schema: Schema for full list rows
        detail_schema: Schema for the show endpoint with all fields
        record_schema: Schema returned by create and update
        load_options: Loader options used when all fields are requested
        extra_filters: Optional builder of extra list conditions
        validate: Optional database-backed body validator
        embeds: List counters of resources embedded in this one's rows
    """

    def __init__(
        self,
        *,
        model: type[Base],
        name: str,
        plural: str,
        search_columns: Sequence[Any],
        list_schema: type[BaseModel],
        detail_schema: type[BaseModel],
        record_schema: type[BaseModel],
        load_options: Sequence[LoaderOption] = (),
        extra_filters: FilterBuilder | None = None,
        validate: Validator | None = None,
        embeds: Sequence[str] = (),
    ) -> None:
        self.model = model
        self.name = name
        self.plural = plural
        self.label = name.capitalize()
        self.search_columns = tuple(search_columns)
        self.list_schema = list_schema
        self.detail_schema = detail_schema
        self.record_schema = record_schema
        self.load_options = tuple(load_options)
        self.extra_filters = extra_filters
        self.validate = validate
        self.embeds = tuple(embeds)

    # -------------------------------------------------------------------------
    # Cache keys
    # -------------------------------------------------------------------------
    def embedded_versions(self) -> dict[str, str]:
        """Current list versions of embedded resources, as key components."""
        return {f"{other}_v": str(get_cache_version(other)) for other in self.embeds}

    def list_cache_key(self, params: Any, page: int) -> str:
        version = get_cache_version(self.plural)
        return make_cache_key(
            self.plural,
            f"v{version}",
            page=page,
            **self.embedded_versions(),
            **params.cache_params(),
        )

    def item_cache_key(self, record_id: int, fields: str) -> str:
        version = get_cache_version(self.name, record_id)
        return make_cache_key(
            self.name,
            record_id,
            f"v{version}",
            fields=fields,
            **self.embedded_versions(),
        )

    def invalidate(self, record_id: int | None = None) -> None:
        """
        Invalidate cached data after a write.

        The list counter always moves. When record_id is given, the
        record's own counter moves too, which drops every cached projection
        of that record at once.
        """
        if record_id is not None:
            bump_cache_version(self.name, record_id)
        bump_cache_version(self.plural)

    # -------------------------------------------------------------------------
    # Query building
    # -------------------------------------------------------------------------
    def conditions(self, params: Any) -> list[ColumnElement[bool]]:
        """WHERE conditions for a list request."""
        clauses: list[ColumnElement[bool]] = []

        if params.search:
            clauses.append(
                or_(*(
                    column.contains(params.search, autoescape=True)
                    for column in self.search_columns
                ))
            )

        if self.extra_filters is not None:
            clauses.extend(self.extra_filters(params))

        return clauses

    def get_or_404(self, db: Session, record_id: int) -> Any:
        """Load a record by primary key or raise 404."""
        record = db.get(self.model, record_id)
        if record is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"{self.label} not found.",
            )
        return record

    def project(self, columns: list[str]) -> Select:
        """SELECT only the named columns."""
        table = self.model.__table__
        return select(*(table.c[name] for name in columns))

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------
    def index(self, db: Session, params: Any, page: int, url: URL) -> dict[str, Any]:
        """
        Return one page of records as the paginated envelope.

        The page's rows and total are cached; links are rebuilt per request
        from the request URL.
        """
        cached = cache_remember(
            self.list_cache_key(params, page),
            get_settings().cache_ttl_list,
            lambda: self._fetch_page(db, params, page),
        )
        return build_page_envelope(cached["data"], cached["total"], page, params.per_page, url)

    def _fetch_page(self, db: Session, params: Any, page: int) -> dict[str, Any]:
        clauses = self.conditions(params)

        count_stmt = select(func.count()).select_from(self.model).where(*clauses)
        total = db.execute(count_stmt).scalar() or 0

        sort_column = getattr(self.model, params.sort_field)
        ordering = sort_column.desc() if params.sort_order == "desc" else sort_column.asc()

        if params.columns is None:
            stmt = select(self.model).options(*self.load_options)
        else:
            stmt = self.project(params.columns)

        stmt = (
            stmt.where(*clauses)
            # id breaks ties so pages never overlap
            .order_by(ordering, self.model.id.asc())
            .offset((page - 1) * params.per_page)
            .limit(params.per_page)
        )

        if params.columns is None:
            records = db.execute(stmt).scalars().all()
            items = [self.list_schema.model_validate(r).model_dump(mode="json") for r in records]
        else:
            items = [jsonable_encoder(dict(row._mapping)) for row in db.execute(stmt)]

        return {"data": items, "total": total}

    def show(self, db: Session, record_id: int, fields: str) -> dict[str, Any]:
        """
        Return one record, read through a one-hour cache.

        Raises:
            HTTPException: 404 if the record does not exist, 500 on database errors
        """
        columns = parse_fields(fields, self.model)

        try:
            data = cache_remember(
                self.item_cache_key(record_id, fields),
                get_settings().cache_ttl_item,
                lambda: self._fetch_one(db, record_id, columns),
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to retrieve {self.name} {record_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to retrieve {self.name}.",
            )

        return {"data": data, "status": status.HTTP_200_OK}

    def _fetch_one(self, db: Session, record_id: int, columns: list[str] | None) -> dict[str, Any]:
        if columns is None:
            stmt = (
                select(self.model)
                .options(*self.load_options)
                .where(self.model.id == record_id)
            )
            record = db.execute(stmt).scalar_one_or_none()
            if record is not None:
                return self.detail_schema.model_validate(record).model_dump(mode="json")
        else:
            row = db.execute(
                self.project(columns).where(self.model.id == record_id)
            ).first()
            if row is not None:
                return jsonable_encoder(dict(row._mapping))

        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{self.label} not found.",
        )

    def create(self, db: Session, payload: BaseModel) -> dict[str, Any]:
        """
        Insert a record and invalidate the list caches.

        A new id has no cached entry yet, so only the list counter moves.
        """
        values = payload.model_dump()
        self._check(db, values)

        record = self.model(**values)
        try:
            db.add(record)
            db.commit()
            db.refresh(record)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to create {self.name}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to create {self.name}.",
            )

        self.invalidate()
        logger.info(f"Created {self.name} {record.id}")

        return {
            "data": self.record_schema.model_validate(record).model_dump(mode="json"),
            "status": status.HTTP_201_CREATED,
        }

    def update(self, db: Session, record_id: int, payload: BaseModel) -> dict[str, Any]:
        """
        Apply only the submitted fields to an existing record.

        Raises:
            HTTPException: 404 if missing, 500 if the write fails
        """
        record = self.get_or_404(db, record_id)

        # exclude_unset keeps fields the client did not send out of the UPDATE
        values = payload.model_dump(exclude_unset=True)
        self._check(db, values)

        try:
            for field, value in values.items():
                setattr(record, field, value)
            db.commit()
            db.refresh(record)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to update {self.name} {record_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to update {self.name}.",
            )

        self.invalidate(record_id)
        logger.info(f"Updated {self.name} {record_id}: {sorted(values)}")

        return {
            "data": self.record_schema.model_validate(record).model_dump(mode="json"),
            "status": status.HTTP_200_OK,
        }

    def delete(self, db: Session, record_id: int) -> None:
        """
        Delete a record and invalidate its cache entries.

        Raises:
            HTTPException: 404 if missing, 500 if the delete fails
        """
        record = self.get_or_404(db, record_id)

        try:
            db.delete(record)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to delete {self.name} {record_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to delete {self.name}.",
            )

        self.invalidate(record_id)
        logger.info(f"Deleted {self.name} {record_id}")

    def _check(self, db: Session, values: dict[str, Any]) -> None:
        if self.validate is None:
            return
        errors = self.validate(db, values)
        if errors:
            raise validation_error("body", errors, values)
