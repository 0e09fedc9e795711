"""
Spine - Python client for JSON:API services.

Routes resources and queries to URLs, runs the fetch, save and delete flows,
and merges server responses back onto the resource instances you hold.
"""

from .client import AsyncSpineClient, SpineClient
from .config import ClientConfig, configure_logging
from .exceptions import (
    AuthenticationError,
    BadRequestError,
    ConflictError,
    DomainError,
    EmptyResponseError,
    ErrorObject,
    ForbiddenError,
    NotFoundError,
    PreconditionError,
    ResourceNotFoundError,
    SerializerError,
    ServerError,
    SpineError,
    TransportError,
    UnaddressableResourceError,
    ValidationError,
)
from .http import (
    AsyncHTTPClient,
    AsyncHttpxClient,
    HTTPClient,
    HTTPResponse,
    HttpxClient,
)
from .orchestrator import AsyncOrchestrator, Orchestrator
from .query import Query
from .resource import (
    Address,
    Addressed,
    Identified,
    Resource,
    ToMany,
    ToOne,
    Unaddressable,
    attribute,
    to_many,
    to_one,
)
from .router import Router
from .serializer import JSONAPISerializer, Serializer
from .store import ResourceStore

__version__ = "0.1.0"

__all__ = [
    # Clients
    "SpineClient",
    "AsyncSpineClient",
    "ClientConfig",
    "configure_logging",
    # Resources
    "Resource",
    "ToOne",
    "ToMany",
    "attribute",
    "to_one",
    "to_many",
    "Address",
    "Addressed",
    "Identified",
    "Unaddressable",
    "Query",
    "ResourceStore",
    # Collaborators
    "Router",
    "Serializer",
    "JSONAPISerializer",
    "HTTPClient",
    "AsyncHTTPClient",
    "HttpxClient",
    "AsyncHttpxClient",
    "HTTPResponse",
    "Orchestrator",
    "AsyncOrchestrator",
    # Exceptions
    "SpineError",
    "TransportError",
    "DomainError",
    "ErrorObject",
    "BadRequestError",
    "AuthenticationError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
    "ValidationError",
    "ServerError",
    "PreconditionError",
    "UnaddressableResourceError",
    "ResourceNotFoundError",
    "SerializerError",
    "EmptyResponseError",
]
