from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .settings import settings


# ---------- proxy request / upstream response ----------
class ChatMessage(BaseModel):
    model_config = ConfigDict(extra="allow")

    role: str
    content: Any = ""


class GenerationRequest(BaseModel):
    """One outbound chat-completion call. Built per request, never mutated."""
    model_config = ConfigDict(frozen=True)

    messages: List[ChatMessage] = Field(min_length=1)
    model: str = Field(default_factory=lambda: settings.DEFAULT_MODEL)
    temperature: float = Field(default_factory=lambda: settings.DEFAULT_TEMPERATURE)
    max_tokens: int = Field(default_factory=lambda: settings.DEFAULT_MAX_TOKENS)
    response_format: Optional[Dict[str, Any]] = None

    def to_upstream(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "model": self.model,
            "messages": [m.model_dump() for m in self.messages],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "stream": False,
        }
        if self.response_format:
            body["response_format"] = self.response_format
        return body


class CompletionMessage(BaseModel):
    content: str


class CompletionChoice(BaseModel):
    message: CompletionMessage


class ChatCompletion(BaseModel):
    choices: List[CompletionChoice] = Field(min_length=1)

    @property
    def content(self) -> str:
        return self.choices[0].message.content


# ---------- quiz ----------
class QuestionKind(str, Enum):
    SINGLE_CHOICE = "TN"
    NUMERIC_ANSWER = "TLN"
    TRUE_FALSE_SET = "DS"


class Difficulty(str, Enum):
    BIET = "BIET"
    HIEU = "HIEU"
    VANDUNG = "VANDUNG"


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")


class Statement(_WireModel):
    id: str
    content: str = Field(description="Nội dung phát biểu")
    is_correct: bool = Field(alias="isCorrect")


class VariationTable(_WireModel):
    x_nodes: List[str] = Field(default_factory=list, alias="xNodes", description="Mốc x (LaTeX)")
    y_prime_signs: List[str] = Field(default_factory=list, alias="yPrimeSigns", description="Dấu y'")
    y_prime_vals: List[str] = Field(
        default_factory=list, alias="yPrimeVals", description="Giá trị tại dòng y' (0, ||)"
    )
    y_nodes: List[str] = Field(
        default_factory=list,
        alias="yNodes",
        description="Giá trị y (LaTeX). Tại tiệm cận đứng BẮT BUỘC dùng định dạng 'LeftVal||RightVal'",
    )

    @field_validator("x_nodes", "y_prime_signs", "y_prime_vals", "y_nodes", mode="before")
    @classmethod
    def null_list_as_empty(cls, v):
        return [] if v is None else v


class EdgeStyle(str, Enum):
    SOLID = "SOLID"
    DASHED = "DASHED"


class GraphNode(_WireModel):
    id: str
    x: float
    y: float
    z: float
    label_position: Optional[str] = Field(default=None, alias="labelPosition")


class GraphEdge(_WireModel):
    source: str = Field(alias="from")
    target: str = Field(alias="to")
    style: EdgeStyle


class GeometryGraph(_WireModel):
    nodes: List[GraphNode] = Field(default_factory=list)
    edges: List[GraphEdge] = Field(default_factory=list)

    @field_validator("nodes", "edges", mode="before")
    @classmethod
    def null_list_as_empty(cls, v):
        return [] if v is None else v


class PlotSpec(_WireModel):
    data: List[Dict[str, Any]] = Field(default_factory=list)
    layout: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("data", mode="before")
    @classmethod
    def null_list_as_empty(cls, v):
        return [] if v is None else v


def _ask_for_explanation(schema: Dict[str, Any]) -> None:
    # explanation stays required in the schema shown to the model
    required = schema.setdefault("required", [])
    if "explanation" not in required:
        required.append("explanation")


class Question(_WireModel):
    model_config = ConfigDict(json_schema_extra=_ask_for_explanation)

    id: str
    type: QuestionKind
    difficulty: Optional[Difficulty] = Field(default=None, description="Mức độ câu hỏi")
    question_text: str = Field(
        alias="questionText",
        description=(
            "Nội dung câu hỏi (LaTeX $). KHÔNG trả về HTML. Chỉ dùng LaTeX Array cho bảng. "
            "Cho hàm số: chỉ một dạng thức (công thức, đồ thị, bảng biến thiên)."
        ),
    )
    options: List[str] = Field(default_factory=list)
    correct_answer: Optional[str] = Field(
        default=None, alias="correctAnswer", description="TN: 'A','B','C','D'. TLN: Số."
    )
    explanation: str = Field(default="", description="Lời giải chi tiết. Dùng '\\n' để xuống dòng.")
    statements: List[Statement] = Field(default_factory=list)
    variation_table_data: Optional[VariationTable] = Field(default=None, alias="variationTableData")
    graph_function: Optional[str] = Field(default=None, alias="graphFunction")
    asymptotes: List[str] = Field(default_factory=list, description="Mảng chứa các đường tiệm cận.")
    geometry_graph: Optional[GeometryGraph] = Field(default=None, alias="geometryGraph")
    plotly_data: Optional[PlotSpec] = Field(default=None, alias="plotlyData")

    @field_validator("correct_answer", mode="before")
    @classmethod
    def number_answer_as_text(cls, v):
        # TLN answers often come back as bare numbers
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("options", "statements", "asymptotes", mode="before")
    @classmethod
    def null_list_as_empty(cls, v):
        return [] if v is None else v

    @field_validator("explanation", mode="before")
    @classmethod
    def null_explanation_as_empty(cls, v):
        return "" if v is None else v


class DifficultyCounts(BaseModel):
    BIET: int = Field(default=0, ge=0)
    HIEU: int = Field(default=0, ge=0)
    VANDUNG: int = Field(default=0, ge=0)

    def total(self) -> int:
        return self.BIET + self.HIEU + self.VANDUNG


class QuizDistribution(BaseModel):
    TN: DifficultyCounts = Field(default_factory=DifficultyCounts)
    TLN: DifficultyCounts = Field(default_factory=DifficultyCounts)
    DS: DifficultyCounts = Field(default_factory=DifficultyCounts)

    def count(self, kind: QuestionKind | str) -> int:
        key = kind.value if isinstance(kind, QuestionKind) else kind
        return getattr(self, key).total()

    def total(self) -> int:
        return sum(self.count(k) for k in QuestionKind)


class QuizConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    topic: str
    distribution: QuizDistribution = Field(default_factory=QuizDistribution)
    additional_prompt: Optional[str] = Field(default=None, alias="additionalPrompt")


class QuizPrompt(BaseModel):
    system_text: str
    user_text: str
