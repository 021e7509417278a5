from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from typing import Any

import dns.exception
import dns.name
import dns.rcode
from pydantic import Field

from protocol_executors.codecs.dns_message import answer_lines, build_query, message_to_tree
from protocol_executors.codecs.dns_tables import record_type
from protocol_executors.connectors.dns_connector import DnsConnector, DnsExchange
from protocol_executors.core.context import StepContext
from protocol_executors.core.enums import ExecutionStage, ExecutorName
from protocol_executors.core.errors import ExchangeError, StepDecodeError, error_text
from protocol_executors.core.models import DEFAULT_ASSERTIONS, ExecutorResult, StepConfig, decode_step


DEFAULT_QTYPE = "A"
DEFAULT_TIMEOUT_SECONDS = 5


class DnsConfig(StepConfig):
    server: str = ""
    query: str = ""
    qtype: str = ""
    timeout: int = Field(default=0, ge=0)


class DnsResult(ExecutorResult):
    query: str = ""
    qtype: str = ""
    server: str = ""
    rcode: str = ""
    message: Any = None


def decode_dns_step(step: Mapping[str, Any]) -> DnsConfig:
    config = decode_step(step, DnsConfig)
    if not config.server.strip():
        raise StepDecodeError("MISSING_SERVER", "server is mandatory for DNS executor")
    return config.model_copy(
        update={
            "qtype": config.qtype or DEFAULT_QTYPE,
            "timeout": config.timeout or DEFAULT_TIMEOUT_SECONDS,
        }
    )


class DnsExecutor:
    name = ExecutorName.DNS.value

    def __init__(self, connector: DnsConnector | None = None, logger: logging.Logger | None = None) -> None:
        self._connector = connector or DnsConnector()
        self._logger = logger or logging.getLogger(__name__)

    def zero_value_result(self) -> DnsResult:
        return DnsResult()

    def get_default_assertions(self) -> list[str]:
        return list(DEFAULT_ASSERTIONS)

    async def run(self, step: Mapping[str, Any], context: StepContext | None = None) -> DnsResult:
        context = context or StepContext()
        self._logger.debug("dns stage=%s", ExecutionStage.DECODING)
        config = decode_dns_step(step)
        self._logger.debug(
            "dns stage=%s server=%s query=%s qtype=%s timeout=%s",
            ExecutionStage.DEFAULTING,
            config.server,
            config.query,
            config.qtype,
            config.timeout,
        )

        result = DnsResult(query=config.query, qtype=config.qtype, server=config.server)
        start = time.perf_counter()

        self._logger.debug("dns stage=%s", ExecutionStage.ENCODING)
        try:
            rdtype = record_type(config.qtype)
            dns.name.from_text(config.query)
        except (ValueError, dns.exception.DNSException) as exc:
            result.err = error_text(exc)
            self._logger.warning("DNS query %s %s not sent: %s", config.query, config.qtype, result.err)
            return self._finish(result, start)

        self._logger.debug("dns stage=%s", ExecutionStage.TRANSPORT)
        try:
            exchange = await self._connector.exchange(
                lambda: build_query(config.query, rdtype),
                server=config.server,
                context=context,
                deadline=context.narrow(config.timeout),
            )
        except (ExchangeError, OSError, dns.exception.DNSException) as exc:
            result.err = error_text(exc)
            self._logger.warning("DNS exchange with %s failed: %s", config.server, result.err)
            return self._finish(result, start)
        except Exception as exc:
            self._logger.exception("DNS exchange with %s failed.", config.server)
            result.err = error_text(exc)
            return self._finish(result, start)

        result.err = exchange.warning

        self._logger.debug("dns stage=%s protocol=%s", ExecutionStage.DECODING_RESPONSE, exchange.protocol)
        result.rcode = dns.rcode.to_text(exchange.response.rcode())
        try:
            tree = message_to_tree(exchange.response)
        except Exception as exc:
            self._logger.exception("Failed to normalize DNS response from %s.", config.server)
            result.err = f"failed to convert DNS message to JSON: {error_text(exc)}"
            return self._finish(result, start)

        self._logger.debug("dns stage=%s", ExecutionStage.RESULT_ASSEMBLY)
        result.message = tree
        result.systemoutjson = tree
        result.systemout = _format_systemout(config, result.rcode, exchange)
        return self._finish(result, start)

    def _finish(self, result: DnsResult, start: float) -> DnsResult:
        result.timeseconds = time.perf_counter() - start
        self._logger.debug("dns stage=%s err=%r", ExecutionStage.DONE, result.err)
        return result


def _format_systemout(config: DnsConfig, rcode: str, exchange: DnsExchange) -> str:
    output = (
        f"DNS Query: {config.query} {config.qtype}\n"
        f"Server: {config.server}\n"
        f"RCode: {rcode}\n"
        f"Response Time: {exchange.rtt * 1000:.3f}ms\n"
    )
    lines = answer_lines(exchange.response)
    if lines:
        output += "Answers:\n" + "".join(f"  {line}\n" for line in lines)
    return output
