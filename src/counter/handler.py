from __future__ import annotations

import logging
from datetime import datetime
from functools import lru_cache
from typing import Any, Callable, Dict, Tuple

from common.auth import authenticate
from common.config import Config
from common.cors import head_response, options_response
from common.http import (
    BadRequest,
    HttpError,
    Method,
    MethodNotAllowed,
    NotFound,
    Request,
    Response,
    UpstreamFailure,
)
from common.logging_setup import setup_logging
from common.shields import BadgeError, ShieldsClient
from common.tasks import (
    InvalidTaskName,
    days_since_message,
    format_timestamp,
    normalize_task_name,
    parse_timestamp,
    utc_now,
)
from state.models import TaskIndex
from state.s3_store import S3TaskStore, TaskStoreError


logger = logging.getLogger(__name__)

FAVICON_PATH = "/favicon.ico"

Clock = Callable[[], datetime]


def _task_from(request: Request) -> str:
    try:
        return normalize_task_name(request.path)
    except InvalidTaskName as ex:
        raise BadRequest() from ex


def _mutation_task(request: Request) -> str:
    task = _task_from(request)
    if task == "":
        raise BadRequest()
    return task


def handle_get(request: Request, store: S3TaskStore, badges: ShieldsClient, clock: Clock) -> Response:
    """Return the task listing, or relay the days-since badge for one task."""
    if request.path == FAVICON_PATH:
        raise NotFound()

    task = _task_from(request)

    if task == "":
        try:
            names = store.list_tasks()
        except TaskStoreError as e:
            logger.error("Listing tasks failed: %s", e)
            raise UpstreamFailure(e) from e
        return Response.json(TaskIndex(tasks=names).model_dump())

    try:
        value = store.get(task)
    except TaskStoreError as e:
        logger.error("Reading task %r failed: %s", task, e)
        raise UpstreamFailure(e) from e

    since = None
    if value is not None:
        try:
            since = parse_timestamp(value)
        except ValueError:
            logger.warning("Ignoring unparseable timestamp for task %r: %r", task, value)

    message = days_since_message(since, clock())
    try:
        return badges.fetch(message, task)
    except BadgeError as e:
        logger.error("Fetching badge for task %r failed: %s", task, e)
        raise UpstreamFailure(e) from e


def make_put_handler(store: S3TaskStore, clock: Clock) -> Callable[[Request, Config], Response]:
    def handle_put(request: Request, config: Config) -> Response:  # noqa: ARG001
        try:
            task = _mutation_task(request)
            try:
                store.put(task, format_timestamp(clock()))
            except TaskStoreError as e:
                logger.error("Touching task %r failed: %s", task, e)
                raise UpstreamFailure(e) from e
        except HttpError as err:
            return err.to_response()
        logger.info("Touched task %r", task)
        return Response.text("Great work!")

    return handle_put


def make_delete_handler(store: S3TaskStore) -> Callable[[Request, Config], Response]:
    def handle_delete(request: Request, config: Config) -> Response:  # noqa: ARG001
        try:
            task = _mutation_task(request)
            try:
                store.delete(task)
            except TaskStoreError as e:
                logger.error("Deleting task %r failed: %s", task, e)
                raise UpstreamFailure(e) from e
        except HttpError as err:
            return err.to_response()
        logger.info("Deleted task %r", task)
        return Response.text("Task deleted")

    return handle_delete


def route(
    request: Request,
    config: Config,
    store: S3TaskStore,
    badges: ShieldsClient,
    *,
    clock: Clock = utc_now,
) -> Response:
    """
    Dispatch a request by HTTP method.

    - HEAD / OPTIONS: static CORS answers
    - GET: listing or badge, no auth
    - PUT / DELETE: Basic auth, then touch / delete the task
    - anything else: 405
    """
    method = Method.parse(request.method)
    try:
        if method is Method.HEAD:
            return head_response()
        if method is Method.OPTIONS:
            return options_response(request)
        if method is Method.GET:
            return handle_get(request, store, badges, clock)
        if method is Method.PUT:
            return authenticate(request, config, make_put_handler(store, clock))
        if method is Method.DELETE:
            return authenticate(request, config, make_delete_handler(store))
        raise MethodNotAllowed()
    except HttpError as err:
        return err.to_response()


@lru_cache(maxsize=1)
def _runtime() -> Tuple[Config, S3TaskStore, ShieldsClient]:
    """Build configuration and gateways once per process (warm starts reuse them)."""
    config = Config.from_env()
    setup_logging(config.log_level)
    store = S3TaskStore.from_env()
    badges = ShieldsClient(base_url=config.badge_base_url, color=config.badge_color)
    return config, store, badges


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """AWS Lambda entry for API Gateway (REST v1 / HTTP API v2) and Function URLs.

    Environment:
    - COUNTER_USERNAME, COUNTER_PASSWORD (fallbacks: USERNAME, PASSWORD)
    - PARAM_PREFIX (optional): SSM prefix providing username / password
    - TASK_BUCKET (fallback: COUNTER_STORAGE_BUCKET), TASK_PREFIX (default: tasks/)
    - BADGE_BASE_URL, BADGE_COLOR, LOG_LEVEL
    """
    config, store, badges = _runtime()
    try:
        request = Request.from_lambda_event(event)
    except ValueError as ex:
        logger.warning("Unroutable event: %s", ex)
        return BadRequest().to_response().to_lambda()
    return route(request, config, store, badges).to_lambda()
