"""
Thin gateway over the Supabase client.

Everything the application needs from the backend-as-a-service goes through
SupabaseBackend: identity (sign up / sign in / session events), table access
with equality / ILIKE filters and ordering, and file storage. Provider
exceptions are re-raised as BackendError so callers only handle one type.
Tests substitute an in-memory object with the same methods.
"""
import logging
from typing import Callable, Optional

from supabase import AuthError, Client, PostgrestAPIError, StorageException, create_client

from .. import config

logger = logging.getLogger(__name__)

# PostgREST code for ".single()" matching zero rows
NOT_FOUND_CODE = "PGRST116"
MISSING_CREDENTIALS_MESSAGE = "Supabase credentials are missing. Please check your .env file."


class BackendError(Exception):
    """Failure reported by the backend service (auth, tables or storage)."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code


def _wrap(e: Exception) -> BackendError:
    message = getattr(e, "message", None) or str(e)
    code = getattr(e, "code", None)
    return BackendError(message, str(code) if code is not None else None)


class SupabaseBackend:
    def __init__(self, url: Optional[str] = None, key: Optional[str] = None):
        self.url = url if url is not None else config.SUPABASE_URL
        self.key = key if key is not None else config.SUPABASE_ANON_KEY
        self._client: Optional[Client] = None

    def is_configured(self) -> bool:
        return bool(self.url and self.key)

    @property
    def client(self) -> Client:
        if self._client is None:
            if not self.is_configured():
                raise BackendError(MISSING_CREDENTIALS_MESSAGE, code="missing_credentials")
            logger.info(f"Creating Supabase client for {self.url}")
            self._client = create_client(self.url, self.key)
        return self._client

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def sign_up(self, email: str, password: str, metadata: dict):
        """Returns the provider's auth response (.user / .session)."""
        try:
            return self.client.auth.sign_up({
                "email": email.strip(),
                "password": password,
                "options": {"data": metadata},
            })
        except AuthError as e:
            raise _wrap(e) from e

    def sign_in(self, email: str, password: str):
        try:
            return self.client.auth.sign_in_with_password({
                "email": email.strip(),
                "password": password,
            })
        except AuthError as e:
            raise _wrap(e) from e

    def sign_out(self) -> None:
        try:
            self.client.auth.sign_out()
        except AuthError as e:
            raise _wrap(e) from e

    def get_current_user(self):
        try:
            response = self.client.auth.get_user()
        except AuthError as e:
            raise _wrap(e) from e
        return response.user if response else None

    def on_auth_state_change(self, callback: Callable):
        """Subscribe to session changes. The returned object has unsubscribe()."""
        return self.client.auth.on_auth_state_change(callback)

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def select_one(self, table: str, column: str, value) -> Optional[dict]:
        """Single row by equality, or None when no row matches."""
        try:
            response = self.client.table(table).select("*").eq(column, value).single().execute()
        except PostgrestAPIError as e:
            if getattr(e, "code", None) == NOT_FOUND_CODE:
                return None
            raise _wrap(e) from e
        return response.data

    def select_many(self, table: str, columns: str = "*", eq: Optional[dict] = None,
                    ilike: Optional[dict] = None, order_by: Optional[str] = None,
                    descending: bool = False) -> list:
        try:
            query = self.client.table(table).select(columns)
            for column, value in (eq or {}).items():
                query = query.eq(column, value)
            for column, pattern in (ilike or {}).items():
                query = query.ilike(column, pattern)
            if order_by:
                query = query.order(order_by, desc=descending)
            response = query.execute()
        except PostgrestAPIError as e:
            raise _wrap(e) from e
        return response.data or []

    def insert(self, table: str, row: dict) -> dict:
        try:
            response = self.client.table(table).insert(row).execute()
        except PostgrestAPIError as e:
            raise _wrap(e) from e
        return response.data[0] if response.data else row

    def update(self, table: str, row_id: str, changes: dict) -> dict:
        try:
            response = self.client.table(table).update(changes).eq("id", row_id).execute()
        except PostgrestAPIError as e:
            raise _wrap(e) from e
        if not response.data:
            raise BackendError(f"No {table} row with id {row_id}", code=NOT_FOUND_CODE)
        return response.data[0]

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    def upload(self, bucket: str, path: str, data: bytes, content_type: str) -> str:
        """Store bytes at bucket/path and return the object's public URL."""
        try:
            bucket_api = self.client.storage.from_(bucket)
            bucket_api.upload(path=path, file=data, file_options={"content-type": content_type})
            return bucket_api.get_public_url(path)
        except StorageException as e:
            raise _wrap(e) from e
