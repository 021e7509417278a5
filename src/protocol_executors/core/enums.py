from enum import StrEnum


class ExecutorName(StrEnum):
    RADIUS = "radius"
    DNS = "dns"


class ExecutionStage(StrEnum):
    DECODING = "decoding"
    DEFAULTING = "defaulting"
    ENCODING = "encoding"
    TRANSPORT = "transport"
    DECODING_RESPONSE = "decoding_response"
    RESULT_ASSEMBLY = "result_assembly"
    DONE = "done"
