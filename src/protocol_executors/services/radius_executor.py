from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from typing import Any

from pydantic import Field

from protocol_executors.codecs.radius_packet import RadiusPacket, decode_packet, encode_attribute
from protocol_executors.codecs.radius_tables import REPLY_ATTRIBUTES, attribute_spec, packet_code, packet_code_name
from protocol_executors.connectors.radius_connector import RadiusUdpConnector
from protocol_executors.core.context import StepContext
from protocol_executors.core.enums import ExecutionStage, ExecutorName
from protocol_executors.core.errors import AttributeEncodingError, ExchangeError, StepDecodeError, error_text
from protocol_executors.core.models import DEFAULT_ASSERTIONS, ExecutorResult, StepConfig, decode_step


DEFAULT_SERVER = "localhost:1812"
DEFAULT_SECRET = "secret"
DEFAULT_CODE = "Access-Request"
DEFAULT_TIMEOUT_SECONDS = 5


class RadiusConfig(StepConfig):
    server: str = ""
    secret: str = ""
    code: str = ""
    timeout: int = Field(default=0, ge=0)
    attributes: dict[str, str] = Field(default_factory=dict)


class RadiusResult(ExecutorResult):
    code: str = ""
    attributes: dict[str, Any] = Field(default_factory=dict)
    request: dict[str, Any] = Field(default_factory=dict)


def decode_radius_step(step: Mapping[str, Any]) -> RadiusConfig:
    config = decode_step(step, RadiusConfig)
    config = config.model_copy(
        update={
            "server": config.server or DEFAULT_SERVER,
            "secret": config.secret or DEFAULT_SECRET,
            "code": config.code or DEFAULT_CODE,
            "timeout": config.timeout or DEFAULT_TIMEOUT_SECONDS,
        }
    )
    if packet_code(config.code) is None:
        raise StepDecodeError("UNSUPPORTED_CODE", f"unsupported RADIUS code: {config.code}")
    return config


class RadiusExecutor:
    name = ExecutorName.RADIUS.value

    def __init__(self, connector: RadiusUdpConnector | None = None, logger: logging.Logger | None = None) -> None:
        self._connector = connector or RadiusUdpConnector()
        self._logger = logger or logging.getLogger(__name__)

    def zero_value_result(self) -> RadiusResult:
        return RadiusResult()

    def get_default_assertions(self) -> list[str]:
        return list(DEFAULT_ASSERTIONS)

    async def run(self, step: Mapping[str, Any], context: StepContext | None = None) -> RadiusResult:
        context = context or StepContext()
        self._logger.debug("radius stage=%s", ExecutionStage.DECODING)
        config = decode_radius_step(step)
        self._logger.debug(
            "radius stage=%s server=%s code=%s timeout=%s attributes=%s",
            ExecutionStage.DEFAULTING,
            config.server,
            config.code,
            config.timeout,
            sorted(config.attributes),
        )

        result = RadiusResult(
            request={
                "server": config.server,
                "code": config.code,
                "attributes": dict(config.attributes),
            }
        )
        start = time.perf_counter()

        self._logger.debug("radius stage=%s", ExecutionStage.ENCODING)
        secret = config.secret.encode("utf-8")
        packet = RadiusPacket.new(packet_code(config.code), secret)
        for attribute, value in config.attributes.items():
            try:
                encode_attribute(packet, attribute, value)
            except AttributeEncodingError as exc:
                result.err = f"failed to add attribute {exc.attribute}: {exc}"
                self._logger.warning("RADIUS request to %s not sent: %s", config.server, result.err)
                return self._finish(result, start)

        try:
            request = packet.encode()
        except ValueError as exc:
            result.err = f"failed to encode RADIUS packet: {exc}"
            self._logger.warning("RADIUS request to %s not sent: %s", config.server, result.err)
            return self._finish(result, start)

        self._logger.debug("radius stage=%s identifier=%s", ExecutionStage.TRANSPORT, packet.identifier)
        try:
            raw_response = await self._connector.exchange(
                request,
                server=config.server,
                secret=secret,
                context=context,
                deadline=context.narrow(config.timeout),
            )
        except (ExchangeError, OSError) as exc:
            result.err = error_text(exc)
            self._logger.warning("RADIUS exchange with %s failed: %s", config.server, result.err)
            return self._finish(result, start)
        except Exception as exc:
            self._logger.exception("RADIUS exchange with %s failed.", config.server)
            result.err = error_text(exc)
            return self._finish(result, start)

        self._logger.debug("radius stage=%s", ExecutionStage.DECODING_RESPONSE)
        try:
            response = decode_packet(raw_response, secret)
        except ValueError as exc:
            result.err = f"invalid RADIUS response: {exc}"
            return self._finish(result, start)

        result.code = packet_code_name(response.code)
        for attribute in REPLY_ATTRIBUTES:
            spec = attribute_spec(attribute)
            value = response.get_string(spec.code) if spec is not None else ""
            if value:
                result.attributes[attribute] = value

        self._logger.debug("radius stage=%s", ExecutionStage.RESULT_ASSEMBLY)
        result.systemout = _format_systemout(result.code, result.attributes)
        result.systemoutjson = {"code": result.code, "attributes": dict(result.attributes)}
        return self._finish(result, start)

    def _finish(self, result: RadiusResult, start: float) -> RadiusResult:
        result.timeseconds = time.perf_counter() - start
        self._logger.debug("radius stage=%s err=%r", ExecutionStage.DONE, result.err)
        return result


def _format_systemout(code: str, attributes: Mapping[str, Any]) -> str:
    lines = [f"RADIUS Response: {code}"]
    if attributes:
        lines.append("Attributes:")
        lines.extend(f"  {key}: {value}" for key, value in attributes.items())
    return "\n".join(lines)
