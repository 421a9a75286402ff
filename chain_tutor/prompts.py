"""Prompt templates and fixed user-facing copy."""
from __future__ import annotations

from typing import List, NamedTuple


AUTHOR_ATTRIBUTION = (
    "\n\n© 2025 Bộ phận Đào tạo - Viện Công nghệ Blockchain và Trí tuệ nhân tạo (ABAII) (abaii.vn)"
)

SOURCES_HEADING = "**Nguồn tham khảo:**"

NO_REPLY_FALLBACK = "Xin lỗi, tôi không thể tạo phản hồi lúc này."

PENDING_REPLY_TEXT = "Đang suy nghĩ..."

WELCOME_MESSAGE = (
    "Chào bạn! Tôi là Trợ lý AI Blockchain, được phát triển bởi Bộ phận Đào tạo - "
    "Viện Công nghệ Blockchain và Trí tuệ nhân tạo (ABAII). Tôi sẵn sàng giải đáp các thắc mắc "
    "của bạn về ví, sàn giao dịch tài sản mã hoá, và công nghệ blockchain. Hãy đặt câu hỏi cho tôi, "
    "hoặc chọn một chủ đề gợi ý bên dưới!"
    f"{AUTHOR_ATTRIBUTION}"
)

API_KEY_MISSING_MESSAGE = (
    "Rất tiếc, Chatbot AI không thể hoạt động do thiếu API Key của Gemini. "
    "Vui lòng kiểm tra cấu hình môi trường."
    f"{AUTHOR_ATTRIBUTION}"
)

CHAT_NOT_READY_NOTICE = "Chatbot AI chưa sẵn sàng (thiếu API Key hoặc lỗi khởi tạo)."

ATTACHMENT_PREFIX = "[Tệp đã được đính kèm: {name}]\n"


class LearningPath(NamedTuple):
    label: str
    prompt: str


LEARNING_PATHS: List[LearningPath] = [
    LearningPath("Blockchain là gì?", "Giải thích cơ bản về Blockchain là gì?"),
    LearningPath("Ví hoạt động thế nào?", "Ví tài sản mã hoá hoạt động như thế nào?"),
    LearningPath("Sàn giao dịch là gì?", "Sàn giao dịch tài sản mã hoá là gì và có mấy loại chính?"),
]


SYSTEM_INSTRUCTIONS = """Bạn là một trợ lý AI chuyên gia về công nghệ blockchain, ví tài sản mã hoá và sàn giao dịch tài sản mã hoá, được phát triển bởi Bộ phận Đào tạo - Viện Công nghệ Blockchain và Trí tuệ nhân tạo (ABAII). Nhiệm vụ của bạn là cung cấp các câu trả lời chính xác, rõ ràng và có cấu trúc tốt cho mục đích giáo dục.

HƯỚNG DẪN TRẢ LỜI:
- Sử dụng ngôn ngữ Tiếng Việt.
- **Định dạng câu trả lời bằng Markdown.** Sử dụng các tiêu đề (ví dụ: '## Tiêu đề chính', '### Tiêu đề phụ'), danh sách có dấu đầu dòng ('- '), danh sách có số thứ tự ('1. '), chữ **in đậm** ('**text**'), và chữ *in nghiêng* ('*text*') để làm cho câu trả lời dễ đọc và khoa học hơn.
- Nếu người dùng tải lên một tệp (hình ảnh, PDF, văn bản), hãy phân tích nội dung của nó và trả lời câu hỏi liên quan đến tệp đó trong bối cảnh blockchain (ví dụ: "Phân tích Sách trắng trong tệp PDF này", "Đây là loại lừa đảo gì qua ảnh chụp màn hình?", "Giao diện ví này có an toàn không?").
- Nếu câu hỏi nằm ngoài phạm vi kiến thức về blockchain, ví hoặc sàn giao dịch tài sản mã hoá, hãy lịch sự thông báo rằng bạn không thể trả lời.
- **Không tự thêm bất kỳ thông tin nào về tác giả hay bản quyền vào cuối câu trả lời,** vì điều đó sẽ được thực hiện tự động.
"""


ALERTS_PROMPT = """Cung cấp 5-7 cảnh báo lừa đảo mới nhất, nổi bật và đa dạng về hình thức trong không gian blockchain và tài sản mã hoá bằng tiếng Việt, tập trung vào những xu hướng được báo cáo gần đây (ví dụ: trong vòng 1 tháng trở lại đây).
Đối với mỗi cảnh báo:
1. Tuyệt đối ưu tiên thông tin từ các nguồn uy tín, đã được xác minh (ví dụ: cơ quan chức năng, tổ chức an ninh mạng, trang tin tức uy tín chuyên về blockchain/an ninh).
2. Cung cấp tiêu đề cảnh báo (tieuDeCanhBao).
3. Mô tả chi tiết về hình thức lừa đảo (moTaChiTiet).
4. Danh sách các dấu hiệu nhận biết cụ thể (dauHieuNhanBiet - là một mảng các chuỗi).
5. Danh sách các cách phòng tránh hiệu quả (cachPhongTranh - là một mảng các chuỗi).
6. Ngày cập nhật thông tin cảnh báo (ngayCapNhat, ví dụ: 'DD/MM/YYYY').
7. Nếu có URL đến nguồn tin gốc đáng tin cậy và có thể truy cập công khai cho cảnh báo cụ thể, hãy bao gồm nó trong trường urlNguonCanhBao.
Định dạng câu trả lời của bạn dưới dạng một mảng JSON của các đối tượng cảnh báo.
Ví dụ: [{"tieuDeCanhBao": "...", "moTaChiTiet": "...", "dauHieuNhanBiet": ["...", "..."], "cachPhongTranh": ["...", "..."], "ngayCapNhat": "28/07/2024", "urlNguonCanhBao": "..."}, ...]
QUAN TRỌNG: Phản hồi của bạn PHẢI CHỈ chứa mảng JSON này. KHÔNG thêm bất kỳ văn bản giới thiệu, giải thích, hoặc kết luận nào khác bên ngoài mảng JSON."""


def slot_owner_label(slot_value: str) -> str:
    """Vietnamese possessive used in messages about a credential slot."""
    return "hệ thống" if slot_value == "system" else "của bạn"


def format_sources_block(citations: List[tuple[str, str]]) -> str:
    """Render (title, uri) pairs as the Markdown sources section."""
    lines = [f"- [{title}]({uri})" for title, uri in citations]
    return f"\n\n{SOURCES_HEADING}\n" + "\n".join(lines)


CHAT_ERROR_TEMPLATE = (
    "Xin lỗi, tôi gặp sự cố khi xử lý yêu cầu của bạn. Vui lòng thử lại sau.\n"
    "Chi tiết lỗi: {detail}"
)
