# app/services/catalog_service.py
import logging
import uuid
from typing import Any, Generic, TypeVar

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, SQLModel

from app.core.errors import NotFoundError, StoreUnavailableError, ValidationError
from app.core.storage import BlobStore
from app.core.uploads import ImageUpload

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=SQLModel)
ReadT = TypeVar("ReadT", bound=SQLModel)


def describe_validation_error(exc: PydanticValidationError) -> str:
    """
    Flatten pydantic errors into one line: "price: Input should be ...; name: ...".
    """
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        msg = err.get("msg", "invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts)


class CatalogService(Generic[RecordT, ReadT]):
    """
    Image-bearing record lifecycle shared by products and categories.

    Ordering rules:
      - fields are validated before anything is stored;
      - the image is stored before the record is written, and removed
        again if the record write fails;
      - a replaced or orphaned image is deleted only after the record
        write succeeded, and that delete is best-effort.

    Subclasses set the schemas and may hook `_prepare_create` /
    `_prepare_update` for entity rules.
    """

    entity_name = "Record"
    create_schema: type[SQLModel]
    update_schema: type[SQLModel]
    read_schema: type[SQLModel]
    # Columns that an update may explicitly set to None
    nullable_fields: frozenset[str] = frozenset()

    def __init__(self, repo, blob_store: BlobStore):
        self.repo = repo
        self.blob_store = blob_store

    # ----- Helpers -----

    def _parse_id(self, raw_id: str | uuid.UUID) -> uuid.UUID:
        if isinstance(raw_id, uuid.UUID):
            return raw_id
        try:
            return uuid.UUID(str(raw_id))
        except ValueError as e:
            raise NotFoundError(f"{self.entity_name} not found") from e

    def _validate(self, schema: type[SQLModel], data: dict[str, Any]) -> SQLModel:
        try:
            return schema.model_validate(data)
        except PydanticValidationError as e:
            raise ValidationError(describe_validation_error(e)) from e

    def _integrity_error(self, exc: IntegrityError) -> Exception:
        return ValidationError(f"{self.entity_name} violates a database constraint")

    @staticmethod
    def _release_connection(session: Session) -> None:
        # The database blob store checks out its own connection and the
        # pool may hold only one; end the request transaction first.
        session.commit()

    def _store_image(self, session: Session, image: ImageUpload | None) -> str | None:
        if image is None:
            return None
        self._release_connection(session)
        return self.blob_store.store(image.payload, image.content_type, image.filename)

    def _write(self, session: Session, write, record: RecordT, new_ref: str | None) -> RecordT:
        """
        Run a repository write; on failure roll back and drop the image
        that was stored for it.
        """
        try:
            return write(session, record)
        except IntegrityError as e:
            session.rollback()
            if new_ref:
                self.blob_store.delete(new_ref)
            raise self._integrity_error(e) from e
        except SQLAlchemyError as e:
            session.rollback()
            if new_ref:
                self.blob_store.delete(new_ref)
            raise StoreUnavailableError(f"Failed to save {self.entity_name.lower()}") from e

    def _prepare_create(self, session: Session, values: dict[str, Any]) -> dict[str, Any]:
        return values

    def _prepare_update(
        self,
        session: Session,
        record: RecordT,
        changes: dict[str, Any],
    ) -> dict[str, Any]:
        return changes

    def to_read(self, record: RecordT) -> ReadT:
        data = record.model_dump(exclude={"image_ref"})
        data["image_url"] = self.blob_store.public_url(record.image_ref)
        return self.read_schema.model_validate(data)

    # ----- Queries -----

    def get_record(self, session: Session, record_id: str | uuid.UUID) -> RecordT:
        record = self.repo.get_by_id(session, self._parse_id(record_id))
        if record is None:
            raise NotFoundError(f"{self.entity_name} not found")
        return record

    def get(self, session: Session, record_id: str | uuid.UUID) -> ReadT:
        return self.to_read(self.get_record(session, record_id))

    def list_all(self, session: Session) -> list[ReadT]:
        """
        All records, newest first. No pagination.
        """
        return [self.to_read(r) for r in self.repo.list_all(session)]

    # ----- Mutations -----

    def create(
        self,
        session: Session,
        data: dict[str, Any],
        image: ImageUpload | None = None,
    ) -> ReadT:
        payload = self._validate(self.create_schema, data)
        values = self._prepare_create(session, payload.model_dump())

        new_ref = self._store_image(session, image)
        record = self.repo.model(**values, image_ref=new_ref)
        record = self._write(session, self.repo.create, record, new_ref)

        logger.info(f"Created {self.entity_name.lower()} {record.id}")
        return self.to_read(record)

    def update(
        self,
        session: Session,
        record_id: str | uuid.UUID,
        data: dict[str, Any],
        image: ImageUpload | None = None,
    ) -> ReadT:
        """
        Sparse update: only keys present in `data` are written.

        A new image replaces the old one; the old payload is deleted
        once the record points at the new reference.
        """
        record = self.get_record(session, record_id)
        payload = self._validate(self.update_schema, data)

        changes = {
            key: value
            for key, value in payload.model_dump(exclude_unset=True).items()
            if value is not None or key in self.nullable_fields
        }
        changes = self._prepare_update(session, record, changes)

        old_ref = record.image_ref
        new_ref = self._store_image(session, image)

        for key, value in changes.items():
            setattr(record, key, value)
        if new_ref:
            record.image_ref = new_ref

        record = self._write(session, self.repo.update, record, new_ref)
        result = self.to_read(record)

        if new_ref and old_ref:
            self._release_connection(session)
            self.blob_store.delete(old_ref)

        logger.info(f"Updated {self.entity_name.lower()} {result.id} fields={sorted(changes)}")
        return result

    def delete(self, session: Session, record_id: str | uuid.UUID) -> None:
        record = self.get_record(session, record_id)
        ref = record.image_ref
        record_key = record.id

        try:
            self.repo.delete(session, record)
        except SQLAlchemyError as e:
            session.rollback()
            raise StoreUnavailableError(f"Failed to delete {self.entity_name.lower()}") from e

        if ref:
            self.blob_store.delete(ref)

        logger.info(f"Deleted {self.entity_name.lower()} {record_key}")
