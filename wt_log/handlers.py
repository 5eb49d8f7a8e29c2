"""Request/response handlers exposed to the user interface.

Each operation identifier (``get-logs``, ``create-log``, ...) maps to one
store call. Results are plain JSON-compatible data; store failures become
HandlerError instances with a stable code and a user-facing message.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, TextIO

from pydantic import ValidationError

from .adif import dump_adif, load_adif
from .exceptions import (
    DuplicateLogNameError,
    EmptyLogNameError,
    HandlerError,
    LogCreateError,
    LogDeleteError,
    LogLoadError,
    LogNameTooLongError,
    LogNotFoundError,
    LogSaveError,
    SettingsError,
    WTLogError,
)
from .models import Log
from .settings import SettingsStore
from .storage import MAX_LOG_NAME_LENGTH, LogStore

logger = logging.getLogger(__name__)

MESSAGES: Dict[str, Dict[str, str]] = {
    "en": {
        "name-required": "The log name is required",
        "name-too-long": f"The log name must be at most {MAX_LOG_NAME_LENGTH} characters",
        "duplicate-name": "A log with this name already exists",
        "not-found": "The log file does not exist",
        "load-failed": "The log could not be loaded",
        "create-failed": "The log could not be created",
        "delete-failed": "The log could not be deleted",
        "save-failed": "The log could not be saved",
        "settings-load-failed": "The settings could not be loaded",
        "settings-save-failed": "The settings could not be saved",
        "io-failed": "The data files could not be accessed",
        "unknown-operation": "Unknown operation",
        "bad-request": "Invalid request",
    },
    "es": {
        "name-required": "El nombre es obligatorio",
        "name-too-long": f"El nombre no puede superar los {MAX_LOG_NAME_LENGTH} caracteres",
        "duplicate-name": "Ya existe un log con ese nombre",
        "not-found": "El archivo del log no existe",
        "load-failed": "No se pudo cargar el log",
        "create-failed": "No se pudo crear el log",
        "delete-failed": "No se pudo eliminar el log",
        "save-failed": "No se pudo guardar el log",
        "settings-load-failed": "No se pudo cargar la configuración",
        "settings-save-failed": "No se pudo guardar la configuración",
        "io-failed": "No se pudo acceder a los archivos de datos",
        "unknown-operation": "Operación desconocida",
        "bad-request": "Solicitud no válida",
    },
}

# Checked in order; subclasses must come before their bases.
ERROR_CODES = (
    (EmptyLogNameError, "name-required"),
    (LogNameTooLongError, "name-too-long"),
    (DuplicateLogNameError, "duplicate-name"),
    (LogNotFoundError, "not-found"),
    (LogLoadError, "load-failed"),
    (LogCreateError, "create-failed"),
    (LogDeleteError, "delete-failed"),
    (LogSaveError, "save-failed"),
)

Payload = Mapping[str, Any]


class RequestHandler:
    """Dispatches named operations to a LogStore and a SettingsStore."""

    def __init__(
        self,
        log_store: LogStore,
        settings_store: SettingsStore,
        *,
        locale: str = "en",
    ) -> None:
        self.log_store = log_store
        self.settings_store = settings_store
        self.messages = MESSAGES.get(locale, MESSAGES["en"])
        self._routes: Dict[str, Callable[[Payload], Any]] = {
            "load-settings": self._load_settings,
            "save-settings": self._save_settings,
            "get-logs": self._get_logs,
            "log-exists": self._log_exists,
            "load-log": self._load_log,
            "create-log": self._create_log,
            "delete-log": self._delete_log,
            "save-log": self._save_log,
            "import-adif": self._import_adif,
            "export-adif": self._export_adif,
        }

    @property
    def operations(self) -> List[str]:
        return list(self._routes)

    def error(self, code: str) -> HandlerError:
        return HandlerError(code, self.messages[code])

    def handle(self, operation: str, payload: Optional[Payload] = None) -> Any:
        """Run one operation and return its JSON-compatible result.

        Raises HandlerError on any failure.
        """
        route = self._routes.get(operation)
        if route is None:
            raise self.error("unknown-operation")
        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise self.error("bad-request")
        try:
            return route(payload)
        except HandlerError as e:
            logger.warning("%s failed: %s", operation, e.code)
            raise
        except WTLogError as e:
            code = next((c for exc, c in ERROR_CODES if isinstance(e, exc)), None)
            if code is None:
                raise
            logger.warning("%s failed: %s", operation, e)
            raise self.error(code) from e
        except ValidationError as e:
            logger.warning("%s got an invalid payload: %s", operation, e)
            raise self.error("bad-request") from e
        except OSError as e:
            logger.error("%s failed with an I/O error: %s", operation, e)
            raise self.error("io-failed") from e

    def respond(self, line: str) -> Dict[str, Any]:
        """Answer one JSON request line with a response envelope."""
        try:
            request = json.loads(line)
        except ValueError:
            return {"id": None, "ok": False, "error": self.error("bad-request").to_dict()}
        if not isinstance(request, dict) or not isinstance(request.get("operation"), str):
            request_id = request.get("id") if isinstance(request, dict) else None
            return {"id": request_id, "ok": False, "error": self.error("bad-request").to_dict()}
        request_id = request.get("id")
        try:
            result = self.handle(request["operation"], request.get("payload"))
        except HandlerError as e:
            return {"id": request_id, "ok": False, "error": e.to_dict()}
        return {"id": request_id, "ok": True, "result": result}

    # Payload helpers

    def _require_str(self, payload: Payload, key: str) -> str:
        value = payload.get(key)
        if not isinstance(value, str):
            raise self.error("bad-request")
        return value

    def _require_log(self, payload: Payload) -> Log:
        return self.log_store.load_log(self._require_str(payload, "filePath"))

    # Settings

    def _load_settings(self, payload: Payload) -> Dict[str, Any]:
        try:
            settings = self.settings_store.load_settings()
        except SettingsError as e:
            raise self.error("settings-load-failed") from e
        return settings.model_dump(mode="json", by_alias=True)

    def _save_settings(self, payload: Payload) -> None:
        settings = payload.get("settings")
        if not isinstance(settings, Mapping):
            raise self.error("bad-request")
        try:
            self.settings_store.save_settings(settings)
        except SettingsError as e:
            raise self.error("settings-save-failed") from e

    # Logs

    def _get_logs(self, payload: Payload) -> List[Dict[str, Any]]:
        try:
            logs = self.log_store.list_logs()
        except OSError as e:
            logger.error("Error reading logs directory: %s", e)
            return []
        return [log.to_payload() for log in logs]

    def _log_exists(self, payload: Payload) -> bool:
        return self.log_store.log_exists(self._require_str(payload, "name"))

    def _load_log(self, payload: Payload) -> Dict[str, Any]:
        return self._require_log(payload).to_payload()

    def _create_log(self, payload: Payload) -> Dict[str, Any]:
        name = self._require_str(payload, "name")
        settings = payload.get("settings")
        if settings is None:
            try:
                settings = self.settings_store.load_settings()
            except SettingsError as e:
                raise self.error("create-failed") from e
        elif not isinstance(settings, Mapping):
            raise self.error("bad-request")
        return self.log_store.create_log(name, settings).to_payload()

    def _delete_log(self, payload: Payload) -> bool:
        return self.log_store.delete_log(self._require_str(payload, "filePath"))

    def _save_log(self, payload: Payload) -> Dict[str, Any]:
        data = payload.get("log")
        if not isinstance(data, Mapping):
            raise self.error("bad-request")
        log = Log.model_validate(data)
        return self.log_store.save_log(log).to_payload()

    # ADIF

    def _import_adif(self, payload: Payload) -> Dict[str, int]:
        log = self._require_log(payload)
        qsos = load_adif(self._require_str(payload, "adif"))
        for qso in qsos:
            log.add_qso(qso)
        self.log_store.save_log(log)
        return {"imported": len(qsos)}

    def _export_adif(self, payload: Payload) -> str:
        log = self._require_log(payload)
        return dump_adif(log.qsos, log.settings)


def serve(handler: RequestHandler, instream: TextIO, outstream: TextIO) -> int:
    """Answer JSON request lines from instream until EOF; return how many were handled."""
    handled = 0
    for line in instream:
        line = line.strip()
        if not line:
            continue
        response = handler.respond(line)
        outstream.write(json.dumps(response, ensure_ascii=False) + "\n")
        outstream.flush()
        handled += 1
    return handled
