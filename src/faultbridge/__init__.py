"""Report faults raised in request, command and job lifecycles to an error tracker."""

from faultbridge.bootstrap import FaultReporting, bootstrap_fault_reporting, create_fault_listener
from faultbridge.client import Client, TrackingClient
from faultbridge.config import AppSettings, ReportingSettings, load_config
from faultbridge.dispatcher import EventDispatcher, subscribe
from faultbridge.errors import FaultBridgeError, IntegrationMismatchError, MissingDependencyError
from faultbridge.listener import FaultListener
from faultbridge.report import Report, SeverityReason
from faultbridge.request import RequestContext, RequestResolver
from faultbridge.signals import (
    CommandErrorEvent,
    CommandExceptionEvent,
    HostCapabilities,
    JobFailed,
    JobHandled,
    RequestErrorEvent,
    RequestExceptionEvent,
    RequestReceived,
)

__all__ = [
    "AppSettings",
    "Client",
    "CommandErrorEvent",
    "CommandExceptionEvent",
    "EventDispatcher",
    "FaultBridgeError",
    "FaultListener",
    "FaultReporting",
    "HostCapabilities",
    "IntegrationMismatchError",
    "JobFailed",
    "JobHandled",
    "MissingDependencyError",
    "Report",
    "ReportingSettings",
    "RequestContext",
    "RequestErrorEvent",
    "RequestExceptionEvent",
    "RequestReceived",
    "RequestResolver",
    "SeverityReason",
    "TrackingClient",
    "bootstrap_fault_reporting",
    "create_fault_listener",
    "load_config",
    "subscribe",
]
