from __future__ import annotations

from typing import Any, Optional, cast

import streamlit as st
from dotenv import load_dotenv

from chain_tutor.alerts import AlertFeed
from chain_tutor.assistant import ChatAssistant
from chain_tutor.attachments import ALLOWED_EXTENSIONS
from chain_tutor.clients import CredentialSlot
from chain_tutor.config import Settings
from chain_tutor.context import AIContext
from chain_tutor.logging import configure_logging
from chain_tutor.markdown import render_html, render_inline
from chain_tutor.notifications import NotificationCenter
from chain_tutor.types import AlertRecord, ConversationMessage

# Load environment variables from .env if present.
load_dotenv()
settings = Settings()
configure_logging(settings.log_level)

st.set_page_config(
    page_title="ABAII – Trợ lý AI Blockchain",
    page_icon="🛡️",
    layout="wide",
    initial_sidebar_state="expanded",
)

# ──────────────────────────────────────────────
# CUSTOM CSS: dark slate theme matching the learning platform
# ──────────────────────────────────────────────
st.markdown(
    """
<style>
@import url('https://fonts.googleapis.com/css2?family=Inter:wght@300;400;500;600;700&display=swap');

.stApp {
    font-family: 'Inter', sans-serif;
}

.hero-header {
    text-align: center;
    padding: 1.5rem 1rem 1rem;
}
.hero-header h1 {
    font-size: 2.3rem;
    font-weight: 700;
    background: linear-gradient(135deg, #38BDF8, #0EA5E9, #FACC15);
    -webkit-background-clip: text;
    -webkit-text-fill-color: transparent;
    background-clip: text;
    margin-bottom: 0.35rem;
}
.hero-header p {
    color: #94A3B8;
    font-size: 0.95rem;
    margin: 0;
}

.status-badge {
    display: inline-block;
    padding: 0.25rem 0.75rem;
    border-radius: 999px;
    font-size: 0.8rem;
    font-weight: 600;
}
.status-ready { background: rgba(14, 165, 233, 0.15); color: #7DD3FC; }
.status-error { background: rgba(239, 68, 68, 0.15); color: #FCA5A5; }

.chat-reply h2, .chat-reply h3, .chat-reply h4 { margin: 0.6rem 0 0.3rem; }
.chat-reply a { color: #38BDF8; }

.alert-card {
    background: rgba(30, 41, 59, 0.6);
    border-left: 4px solid #F87171;
    border-radius: 10px;
    padding: 1rem 1.2rem;
    margin-bottom: 0.8rem;
}
.alert-card h4 { color: #FCA5A5; margin: 0 0 0.4rem; }
.alert-meta { color: #94A3B8; font-size: 0.8rem; }
</style>
""",
    unsafe_allow_html=True,
)

st.markdown(
    """
<div class="hero-header">
    <h1>🛡️ Trợ lý AI Blockchain</h1>
    <p>Hỏi đáp về ví, sàn giao dịch và công nghệ blockchain · Cảnh báo lừa đảo cập nhật bởi AI</p>
</div>
""",
    unsafe_allow_html=True,
)

_TOAST_ICONS = {"success": "✅", "error": "⚠️", "info": "ℹ️", "warning": "⚠️"}


def get_notifier() -> NotificationCenter:
    """Read or initialize the notification sink from session state."""
    if not isinstance(st.session_state.get("notifier"), NotificationCenter):
        st.session_state["notifier"] = NotificationCenter(settings.notification_duration_ms)
    return cast(NotificationCenter, st.session_state["notifier"])


def get_context() -> AIContext:
    """Build the AI context once per browser session."""
    if not isinstance(st.session_state.get("ai_context"), AIContext):
        st.session_state["ai_context"] = AIContext.build(settings)
    return cast(AIContext, st.session_state["ai_context"])


def get_assistant() -> ChatAssistant:
    if not isinstance(st.session_state.get("assistant"), ChatAssistant):
        assistant = ChatAssistant(get_context(), get_notifier())
        assistant.start()
        st.session_state["assistant"] = assistant
    return cast(ChatAssistant, st.session_state["assistant"])


def get_alert_feed() -> AlertFeed:
    if not isinstance(st.session_state.get("alert_feed"), AlertFeed):
        st.session_state["alert_feed"] = AlertFeed(get_context(), get_notifier())
    return cast(AlertFeed, st.session_state["alert_feed"])


def show_notifications(notifier: NotificationCenter) -> None:
    """Flush pending notices as toasts."""
    for notice in notifier.drain():
        st.toast(notice.message, icon=_TOAST_ICONS.get(notice.type, "ℹ️"))


def render_message(message: ConversationMessage) -> None:
    avatar = "🧑‍💻" if message.author == "user" else ("⚠️" if message.error_detail else "🤖")
    with st.chat_message(message.author, avatar=avatar):
        if message.is_pending:
            st.markdown(f"*{message.body}*")
        elif message.author == "user":
            st.text(message.body)
        else:
            st.markdown(f'<div class="chat-reply">{render_html(message.body)}</div>', unsafe_allow_html=True)


def render_alert(alert: AlertRecord) -> None:
    indicators = "".join(f"<li>{render_inline(item)}</li>" for item in alert.indicators)
    mitigations = "".join(f"<li>{render_inline(item)}</li>" for item in alert.mitigations)
    source = ""
    if alert.source_url:
        source = render_inline(f"[Nguồn tin gốc]({alert.source_url})")
    st.markdown(
        f'<div class="alert-card">'
        f"<h4>{render_inline(alert.title)}</h4>"
        f'<div class="alert-meta">Cập nhật: {render_inline(alert.last_updated)}</div>'
        f"{render_html(alert.description)}"
        f"<strong>Dấu hiệu nhận biết:</strong><ul>{indicators}</ul>"
        f"<strong>Cách phòng tránh:</strong><ul>{mitigations}</ul>"
        f"{source}"
        f"</div>",
        unsafe_allow_html=True,
    )


def run_turn(assistant: ChatAssistant, prompt: str) -> None:
    with st.spinner("🤖 Đang suy nghĩ..."):
        assistant.send(prompt)
    st.rerun()


context = get_context()
notifier = get_notifier()
assistant = get_assistant()
alert_feed = get_alert_feed()

# ──────────────────── Sidebar ────────────────────
with st.sidebar:
    st.markdown("## ⚙️ Cấu hình")

    if context.provider.is_ready(CredentialSlot.SYSTEM):
        st.markdown('<span class="status-badge status-ready">🔑 API hệ thống sẵn sàng</span>', unsafe_allow_html=True)
    else:
        st.markdown('<span class="status-badge status-error">🔑 Thiếu API Key hệ thống</span>', unsafe_allow_html=True)

    st.markdown("---")
    st.markdown("**Sử dụng API Key Gemini của bạn:**")
    user_key_input = st.text_input(
        "API Key cá nhân",
        value=context.stored_user_key or "",
        type="password",
        placeholder="Nhập API Key Gemini của bạn tại đây",
        label_visibility="collapsed",
    )
    save_col, clear_col = st.columns(2)
    with save_col:
        if st.button("💾 Lưu Key", use_container_width=True):
            alert_feed.save_user_key(user_key_input)
    with clear_col:
        if st.button("🗑️ Xóa Key", use_container_width=True, disabled=context.stored_user_key is None):
            alert_feed.clear_user_key()
    st.caption(alert_feed.slots[CredentialSlot.USER].status_message)
    st.caption("API Key được lưu dưới dạng văn bản thuần trên máy này.")

    st.markdown("---")
    if st.button("🧹 Xóa hội thoại", use_container_width=True):
        assistant.reset()
        assistant.start()

chat_tab, alerts_tab = st.tabs(["💬 Trợ lý AI", "🚨 Cảnh báo lừa đảo"])

# ──────────────────── Chat Tab ────────────────────
with chat_tab:
    for message in assistant.messages:
        render_message(message)

    if assistant.is_ready:
        st.caption("Hoặc chọn một chủ đề gợi ý:")
        path_cols = st.columns(len(assistant.learning_paths))
        for col, path in zip(path_cols, assistant.learning_paths):
            with col:
                if st.button(path.label, disabled=not assistant.can_send, use_container_width=True):
                    run_turn(assistant, path.prompt)
    else:
        st.warning("Chatbot AI không hoạt động. Cần cấu hình API Key trong môi trường.")

    uploaded: Optional[Any] = st.file_uploader(
        f"📎 Đính kèm tệp (Ảnh, PDF, TXT... Tối đa {settings.max_attachment_mb}MB)",
        type=list(ALLOWED_EXTENSIONS),
        disabled=not assistant.can_send or assistant.attachments.staged is not None,
        key=f"uploader_{len(assistant.messages)}",
    )
    if uploaded is not None and assistant.attachments.staged is None:
        upload_id = str(getattr(uploaded, "file_id", uploaded.name))
        # Each upload is staged (or rejected) once, not on every rerun.
        if st.session_state.get("last_upload_id") != upload_id:
            st.session_state["last_upload_id"] = upload_id
            assistant.attachments.stage(str(uploaded.name), str(uploaded.type), uploaded.getvalue())

    staged = assistant.attachments.staged
    if staged is not None:
        file_col, remove_col = st.columns([5, 1])
        with file_col:
            st.caption(f"📄 {staged.source_file} · {staged.size_bytes / 1024:.1f} KB")
        with remove_col:
            if st.button("✖", help="Gỡ bỏ tệp"):
                assistant.attachments.clear()
                st.rerun()

    placeholder = "Hỏi hoặc dán link/đính kèm tệp..." if assistant.can_send else "Chatbot không sẵn sàng..."
    question = st.chat_input(placeholder, disabled=not assistant.can_send)
    if question:
        run_turn(assistant, question)

# ──────────────────── Alerts Tab ────────────────────
with alerts_tab:
    system_col, user_col = st.columns(2)
    with system_col:
        if st.button(
            f"🔄 {alert_feed.button_label(CredentialSlot.SYSTEM)}",
            disabled=not alert_feed.can_fetch(CredentialSlot.SYSTEM),
            use_container_width=True,
        ):
            with st.spinner("Đang tải cảnh báo..."):
                alert_feed.fetch(CredentialSlot.SYSTEM)
            st.rerun()
        st.caption(alert_feed.slots[CredentialSlot.SYSTEM].status_message)
    with user_col:
        if st.button(
            f"🔑 {alert_feed.button_label(CredentialSlot.USER)}",
            disabled=not alert_feed.can_fetch(CredentialSlot.USER),
            use_container_width=True,
        ):
            with st.spinner("Đang tải cảnh báo..."):
                alert_feed.fetch(CredentialSlot.USER)
            st.rerun()
        st.caption(alert_feed.slots[CredentialSlot.USER].status_message)

    for slot in CredentialSlot:
        slot_error = alert_feed.slots[slot].error
        if slot_error:
            st.error(slot_error)

    if alert_feed.alerts:
        for alert in alert_feed.alerts:
            render_alert(alert)
        citations = alert_feed.alerts[0].citations
        if citations:
            with st.expander("📎 Nguồn tham khảo từ Google Search", expanded=False):
                for citation in citations:
                    st.markdown(render_html(f"- [{citation.title}]({citation.uri})"), unsafe_allow_html=True)
    else:
        st.info("Chưa có cảnh báo nào. Nhấn nút tải để lấy cảnh báo mới nhất.")

show_notifications(notifier)
