"""Google Generative AI types as spoken by the Cloud Code backend."""

from typing import Any

from typing_extensions import TypedDict


class InlineData(TypedDict):
    mimeType: str
    data: str


class FileData(TypedDict):
    mimeType: str
    fileUri: str


class FunctionCall(TypedDict, total=False):
    id: str
    name: str
    args: dict[str, Any]


class FunctionResponse(TypedDict, total=False):
    id: str
    name: str
    response: Any


class Part(TypedDict, total=False):
    """One unit of backend content.

    Attributes:
        text: Plain text, or reasoning text when ``thought`` is true.
        thought: Marks the part as a reasoning trace.
        thoughtSignature: Proof attached to thoughts and function calls.
        inlineData / fileData: Media payloads.
        functionCall / functionResponse: Tool traffic.
    """
    text: str
    thought: bool
    thoughtSignature: str
    inlineData: InlineData
    fileData: FileData
    functionCall: FunctionCall
    functionResponse: FunctionResponse


class Content(TypedDict):
    role: str
    parts: list[Part]


class FunctionDeclaration(TypedDict):
    name: str
    description: str
    parameters: dict[str, Any]


class GenerateContentRequest(TypedDict, total=False):
    contents: list[Content]
    systemInstruction: dict[str, Any]
    generationConfig: dict[str, Any]
    tools: list[dict[str, list[FunctionDeclaration]]]
    toolConfig: dict[str, Any]
    sessionId: str


class UsageMetadata(TypedDict, total=False):
    promptTokenCount: int
    candidatesTokenCount: int
    cachedContentTokenCount: int
    thoughtsTokenCount: int
    totalTokenCount: int


class Candidate(TypedDict, total=False):
    content: Content
    finishReason: str
    index: int


class GenerateContentResponse(TypedDict, total=False):
    candidates: list[Candidate]
    usageMetadata: UsageMetadata
    responseId: str
    modelVersion: str
