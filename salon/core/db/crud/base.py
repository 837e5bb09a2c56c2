from datetime import datetime, timezone
from typing import (
    Any,
    TypeVar,
    Generic,
    Type,
    Sequence,
    Callable,
)
from uuid import UUID

from sqlalchemy import (
    SQLColumnExpression,
    and_,
    func,
    update as sa_update,
    delete as sa_delete,
)
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.sql import Delete, Update

from salon.core.exceptions.types import DatabaseException

T = TypeVar("T")

# Dialects with a native INSERT ... ON CONFLICT ... DO UPDATE
_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class BaseDB(Generic[T]):
    def __init__(self, model: Type[T]):
        self.model = model

    async def get_all(
        self,
        session: AsyncSession,
        filters: list[Any] | None = None,
        order_by: list[Any] | None = None,
        limit: int | None = None,
    ) -> Sequence[T]:
        """
        Retrieve filtered and ordered results from the DB.

        Args:
            session: Async SQLAlchemy session.
            filters: list of filter expressions to apply.
            order_by: list of columns/expressions to order by.
            limit: Max number of records to return.

        Returns:
            A sequence of model instances.
        """
        try:
            stmt = select(self.model)

            if filters:
                stmt = stmt.filter(*filters)
            if order_by:
                stmt = stmt.order_by(*order_by)
            if limit:
                stmt = stmt.limit(limit)

            result = await session.execute(stmt)
            return result.scalars().all()

        except SQLAlchemyError as e:
            raise DatabaseException(
                f"Error retrieving all {self.model.__name__} records: {str(e)}"
            ) from e

    async def get_one_by_conditions(
        self,
        session: AsyncSession,
        conditions: Sequence[SQLColumnExpression],
    ) -> T | None:
        """
        Asynchronously retrieves a single record of the model that matches the given conditions.

        Args:
            session (AsyncSession): The asynchronous database session to use for the query.
            conditions (list[SQLColumnExpression]): A list of SQLAlchemy expressions to filter the query.

        Returns:
            T | None: An instance of the model if found, otherwise None.

        Raises:
            DatabaseException: If an error occurs while querying the database.
        """
        try:
            stmt = select(self.model).where(and_(*conditions))
            result = await session.execute(stmt)
            return result.scalars().first()
        except (SQLAlchemyError, ValueError) as e:
            raise DatabaseException(
                f"Error retrieving one {self.model.__name__} with conditions {conditions}: {str(e)}"
            ) from e

    async def count(
        self, session: AsyncSession, conditions: Sequence[SQLColumnExpression]
    ) -> int:
        """Count the records matching ``conditions``."""
        try:
            stmt = (
                select(func.count())
                .select_from(self.model)
                .where(and_(*conditions))
            )
            result = await session.execute(stmt)
            return int(result.scalar_one())
        except SQLAlchemyError as e:
            raise DatabaseException(
                f"Error counting {self.model.__name__} records: {str(e)}"
            ) from e

    async def exists(
        self, session: AsyncSession, conditions: Sequence[SQLColumnExpression]
    ) -> bool:
        """
        Checks if an instance of the model exists in the database that matches the given conditions.
        Args:
            session (AsyncSession): The asynchronous database session to use for the query.
            conditions (list[SQLColumnExpression]): SQLAlchemy expressions to filter by.
        Returns:
            bool: True if an instance exists, False otherwise.
        Raises:
            DatabaseException: If an error occurs while querying the database.
        """
        try:
            stmt = select(self.model.id).where(and_(*conditions)).limit(1)  # type: ignore[attr-defined]
            result = await session.execute(stmt)
            return result.first() is not None
        except (SQLAlchemyError, ValueError) as e:
            raise DatabaseException(
                f"Error checking existence of {self.model.__name__}: {str(e)}"
            ) from e

    async def create(
        self,
        session: AsyncSession,
        data: dict,
        validate: Callable[[dict], dict] | None = None,
        commit_self: bool = True,
    ) -> T:
        """
        Asynchronously creates and persists a new instance of the model using the provided data.
        Args:
            session (AsyncSession): The SQLAlchemy asynchronous session to use for database operations.
            data (dict): A dictionary of fields and values to initialize the model instance.
            validate (Callable[[dict], dict] | None, optional): An optional callable to validate or transform the input data before model instantiation. Defaults to None.
            commit_self (bool, optional): If True, commits the transaction and refreshes the object from the database. If False, only flushes the session. Defaults to True.
        Returns:
            T: The newly created and persisted model instance.
        Raises:
            DatabaseException: If an error occurs while creating the model instance or committing the transaction.
        """
        try:
            if validate:
                data = validate(data)

            obj = self.model(**data)
            session.add(obj)

            if commit_self:
                await session.commit()
            else:
                await session.flush()

            await session.refresh(obj)
            return obj
        except (SQLAlchemyError, ValueError) as e:
            raise DatabaseException(
                f"Error creating {self.model.__name__}: {str(e)}"
            ) from e

    async def update(
        self, session: AsyncSession, id: UUID, updates: dict, commit_self: bool = True
    ) -> T | None:
        """
        Asynchronously updates a record in the database with the given ID using the provided updates.
        Args:
            session (AsyncSession): The SQLAlchemy asynchronous session to use for the update operation.
            id (UUID): The unique identifier of the record to update.
            updates (dict): A dictionary containing the fields and their new values to update in the record.
            commit_self (bool, optional): If True, commits the transaction after the update; otherwise, flushes the session. Defaults to True.
        Returns:
            T | None: The updated record as an instance of the model, or None if no record was found with the given ID.
        Raises:
            DatabaseException: If an error occurs while updating the record or committing the transaction.
        """
        try:
            stmt: Update = (
                sa_update(self.model)
                .where(self.model.id == id)  # type: ignore[attr-defined]
                .values(**updates)
                .returning(self.model)
                .execution_options(populate_existing=True)
            )
            result = await session.execute(stmt)
            instance = result.scalar_one_or_none()

            if commit_self:
                await session.commit()
            else:
                await session.flush()

            return instance
        except SQLAlchemyError as e:
            raise DatabaseException(
                f"Error updating {self.model.__name__} with ID {id}: {str(e)}"
            ) from e

    async def delete(
        self, session: AsyncSession, id: UUID, commit_self: bool = True
    ) -> bool:
        """
        Asynchronously deletes a record from the database by its UUID.
        Args:
            session (AsyncSession): The SQLAlchemy asynchronous session to use for the operation.
            id (UUID): The unique identifier of the record to delete.
            commit_self (bool, optional): If True, commits the transaction after deletion;
                if False, only flushes the session. Defaults to True.
        Returns:
            bool: True if a row was deleted.
        Raises:
            DatabaseException: If an error occurs while deleting the record or committing the transaction.
        """
        deleted = await self.delete_by_conditions(
            session,
            [self.model.id == id],  # type: ignore[attr-defined]
            commit_self=commit_self,
        )
        return deleted > 0

    async def delete_by_conditions(
        self,
        session: AsyncSession,
        conditions: Sequence[SQLColumnExpression],
        commit_self: bool = True,
    ) -> int:
        """
        Asynchronously deletes records matching all of the given conditions.

        The returned row count is what makes conditional deletes usable as a
        compare-and-delete: a caller that gets ``1`` back knows no concurrent
        transaction removed or changed the row first.

        Args:
            session (AsyncSession): The SQLAlchemy asynchronous session to use for the delete operation.
            conditions (list[SQLColumnExpression]): SQLAlchemy expressions identifying the records to delete.
            commit_self (bool, optional): If True, commits the transaction after the delete; otherwise, flushes the session. Defaults to True.
        Returns:
            int: The number of records deleted.
        Raises:
            DatabaseException: If an error occurs while deleting the records or committing the transaction.
        """
        try:
            stmt: Delete = sa_delete(self.model).where(and_(*conditions))
            result = await session.execute(stmt)

            if commit_self:
                await session.commit()
            else:
                await session.flush()

            return result.rowcount  # type: ignore[attr-defined]
        except SQLAlchemyError as e:
            raise DatabaseException(
                f"Error deleting {self.model.__name__} records: {str(e)}"
            ) from e

    async def upsert(
        self,
        session: AsyncSession,
        data: dict[str, Any],
        unique_fields: list[str],
        exclude_from_update: list[str] | None = None,
        commit_self: bool = True,
    ) -> T:
        """
        Upsert a record using INSERT ... ON CONFLICT ... DO UPDATE.

        Performs an atomic upsert operation: inserts a new record if it doesn't exist,
        or replaces the existing record's fields if there's a conflict on the unique
        fields. Supported on PostgreSQL and SQLite.

        Args:
            session: Database session.
            data: Dictionary of all fields to set on the record.
            unique_fields: List of field names that form the unique constraint
                          for conflict detection (e.g., ["email"]).
            exclude_from_update: Fields to exclude from updates on conflict.
                                 Defaults to ["id", "created_at"] plus the unique_fields.
            commit_self: Whether to commit after the operation.

        Returns:
            The inserted or updated instance.

        Raises:
            DatabaseException: If an error occurs during the operation.
            ValueError: If any unique_field is missing from data.
        """
        for field in unique_fields:
            if field not in data:
                raise ValueError(
                    f"Unique field '{field}' must be present in data for upsert"
                )

        dialect_name = session.get_bind().dialect.name
        insert_fn = _UPSERT_INSERTS.get(dialect_name)
        if insert_fn is None:
            raise DatabaseException(
                f"Upsert is not supported on the '{dialect_name}' dialect"
            )

        try:
            default_exclude = {"id", "created_at", *unique_fields}
            if exclude_from_update:
                default_exclude.update(exclude_from_update)

            insert_data = dict(data)

            now = datetime.now(timezone.utc)
            if hasattr(self.model, "created_at") and "created_at" not in insert_data:
                insert_data["created_at"] = now
            if hasattr(self.model, "updated_at") and "updated_at" not in insert_data:
                insert_data["updated_at"] = now

            update_set = {
                k: v for k, v in insert_data.items() if k not in default_exclude
            }
            if hasattr(self.model, "updated_at"):
                update_set["updated_at"] = now

            stmt = (
                insert_fn(self.model)
                .values(**insert_data)
                .on_conflict_do_update(
                    index_elements=unique_fields,
                    set_=update_set,
                )
                .returning(self.model)
                .execution_options(populate_existing=True)
            )

            result = await session.execute(stmt)
            instance = result.scalar_one()

            if commit_self:
                await session.commit()
            else:
                await session.flush()

            return instance

        except SQLAlchemyError as e:
            raise DatabaseException(
                f"Error upserting {self.model.__name__}: {str(e)}"
            ) from e
