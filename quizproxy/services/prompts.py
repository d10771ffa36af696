import json

from ..errors import InputValidationError
from ..schemas import Question, QuestionKind, QuizConfig, QuizPrompt

KIND_LABELS = {
    QuestionKind.SINGLE_CHOICE: "Trắc nghiệm (TN)",
    QuestionKind.NUMERIC_ANSWER: "Tự luận số (TLN)",
    QuestionKind.TRUE_FALSE_SET: "Đúng/Sai (DS)",
}

RULES = """QUY TẮC QUAN TRỌNG:
1. Mỗi câu hỏi phải có ID duy nhất (ví dụ: "q1", "q2")
2. Công thức toán học dùng LaTeX trong $...$
3. Câu hình học không gian: dùng geometryGraph với cạnh khuất là DASHED
4. Câu hàm số: chỉ chọn MỘT dạng (công thức, đồ thị, hoặc bảng biến thiên)
5. Tiệm cận: dùng asymptotes array (ví dụ: ["x=2", "y=1"])
6. Bảng biến thiên: dùng variationTableData với định dạng chuẩn
7. Câu Đúng/Sai: phải có 4 statements với isCorrect true/false"""


def question_schema_text() -> str:
    return json.dumps(Question.model_json_schema(), ensure_ascii=False, indent=2)


def _distribution_text(config: QuizConfig) -> str:
    dist = config.distribution
    blocks = []
    for kind in QuestionKind:
        counts = getattr(dist, kind.value)
        blocks.append(
            f"- {KIND_LABELS[kind]}: {counts.total()} câu\n"
            f"  + Mức Biết: {counts.BIET}\n"
            f"  + Mức Hiểu: {counts.HIEU}\n"
            f"  + Mức Vận dụng: {counts.VANDUNG}"
        )
    return "\n\n".join(blocks)


def build_quiz_prompt(config: QuizConfig) -> QuizPrompt:
    total = config.distribution.total()
    if total == 0:
        raise InputValidationError("Nhập số lượng câu hỏi ít nhất là 1!", error="Invalid distribution")

    system_text = (
        "Bạn là Chuyên Gia Giáo Dục chuyên tạo đề thi Toán học.\n"
        f'Hãy tạo {total} câu hỏi về chủ đề "{config.topic}" theo phân phối và yêu cầu sau.\n\n'
        "QUAN TRỌNG: Bạn PHẢI trả về JSON hợp lệ theo schema đã định. "
        "Chỉ trả về JSON, không thêm text giải thích.\n\n"
        f"SCHEMA JSON cần tuân thủ: {question_schema_text()}\n\n"
        f"PHÂN PHỐI CÂU HỎI:\n{_distribution_text(config)}\n\n"
        f"YÊU CẦU BỔ SUNG: {config.additional_prompt or 'Không có'}\n\n"
        f"{RULES}"
    )
    user_text = (
        f'Tạo chính xác {total} câu hỏi về "{config.topic}" theo phân phối và yêu cầu trên.\n'
        "Đảm bảo mỗi câu đúng mức độ khó.\n"
        "Chỉ trả về JSON mảng các câu hỏi."
    )
    return QuizPrompt(system_text=system_text, user_text=user_text)


def build_theory_prompt(topic: str) -> str:
    return (
        f'Bạn là giáo viên Toán THPT giỏi. Hãy tóm tắt LÝ THUYẾT TRỌNG TÂM cho chủ đề: "{topic}".\n\n'
        "YÊU CẦU:\n"
        "1. Ngắn gọn, súc tích, tập trung vào công thức, định nghĩa, tính chất quan trọng nhất\n"
        "2. Trình bày bằng Markdown với các heading (#, ##, ###)\n"
        "3. Các công thức toán học BẮT BUỘC dùng LaTeX kẹp trong dấu $\n"
        "   Ví dụ: $\\int_{a}^{b} f(x) dx$, $\\lim_{x \\to a} f(x)$\n"
        "4. Chia mục rõ ràng: I. Định nghĩa, II. Công thức, III. Tính chất, IV. Ví dụ minh họa\n"
        "5. Chỉ trả về nội dung lý thuyết, không thêm lời giải thích khác\n"
        "6. Dùng tiếng Việt với thuật ngữ Toán học chuẩn\n\n"
        "Hãy tạo lý thuyết chất lượng, tập trung vào những phần học sinh thường hay quên hoặc nhầm lẫn."
    )
