import asyncio
import logging

import streamlit as st
from dotenv import load_dotenv

# Load environment variables before settings are read
load_dotenv()

from mdrs.config import settings  # noqa: E402
from mdrs.core.formatter import segments_to_markdown  # noqa: E402
from mdrs.core.session_state import FileHandle  # noqa: E402
from mdrs.schemas.analysis import MODALITIES, MODALITY_CONFIG  # noqa: E402
from mdrs.services.analysis_service import BUSY_LABEL, AnalysisSession  # noqa: E402
from mdrs.services.report_service import (  # noqa: E402
    REVIEW_NOTICE,
    VERIFIED_BADGE,
    ReportView,
    build_report,
)

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

# 1. Page Config
st.set_page_config(page_title="MDRS · Analyze Media", page_icon="🔍", layout="centered")

# 2. Session
# Widget keys carry a nonce so reset / tab switches hand out fresh, empty widgets.
if "analysis_session" not in st.session_state:
    st.session_state["analysis_session"] = AnalysisSession(
        base_url=settings.api_base_url, timeout=settings.analysis_timeout_sec
    )
    st.session_state["widget_nonce"] = 0

session: AnalysisSession = st.session_state["analysis_session"]


def _bump_nonce():
    st.session_state["widget_nonce"] += 1


def _key(name: str) -> str:
    return f"{name}-{st.session_state['widget_nonce']}"


def _to_handle(uploaded) -> FileHandle:
    return FileHandle(
        name=uploaded.name,
        size=uploaded.size,
        content=uploaded.getvalue(),
        content_type=uploaded.type or None,
        upload_id=getattr(uploaded, "file_id", None),
    )


# 3. Input View
def render_input_form():
    state = session.state
    active = state.input.modality

    st.title("Analyze Media")
    st.caption("Upload content to assess deception risk with explainable AI")

    # Modality tabs
    cols = st.columns(len(MODALITIES))
    for col, modality in zip(cols, MODALITIES):
        cfg = MODALITY_CONFIG[modality]
        if col.button(
            f"{cfg['icon']} {cfg['label']}",
            key=f"tab-{modality}",
            type="primary" if modality == active else "secondary",
            use_container_width=True,
        ) and modality != active:
            session.select_modality(modality)
            _bump_nonce()
            st.rerun()

    # Upload area / text input
    if active == "text":
        text = st.text_area(
            "Text content",
            value=state.input.text,
            key=_key("text"),
            placeholder="Paste or type text content to analyze for deception signals...",
            height=220,
        )
        session.set_text(text)
    else:
        uploaded = st.file_uploader(
            f"Drop your {active} file here or click to browse",
            key=_key(f"file-{active}"),
            help=f"Supports all common {active} formats",
        )
        if uploaded is not None:
            session.sync_upload(_to_handle(uploaded))
        elif session.state.input.file is not None:
            session.clear_file()

        current = session.state.input.file
        if current is not None:
            st.markdown(f"✅ **{current.name}** ({current.size_text})")

    # Metadata
    st.markdown("#### Optional Metadata (Improves Analysis)")
    c1, c2, c3 = st.columns(3)
    source = c1.text_input(
        "Source", value=state.input.source, key=_key("source"), placeholder="Source (e.g., Twitter)"
    )
    timestamp = c2.text_input(
        "Timestamp", value=state.input.timestamp, key=_key("timestamp"), placeholder="Timestamp"
    )
    context = c3.text_input(
        "Context", value=state.input.context, key=_key("context"), placeholder="Claimed context"
    )
    session.set_metadata(source=source, timestamp=timestamp, context=context)

    # Analyze button
    # A click only marks the submit pending and reruns, so the disabled busy
    # button is on screen before the blocking call starts.
    pending = st.session_state.get("submit_pending", False)
    button_text, button_disabled = session.analyze_button(MODALITY_CONFIG[active]["label"], pending)
    if st.button(button_text, type="primary", disabled=button_disabled, use_container_width=True):
        st.session_state["submit_pending"] = True
        st.rerun()

    if pending:
        st.session_state["submit_pending"] = False
        logger.info(f"[PAGE] Submitting {active} analysis")
        with st.spinner(BUSY_LABEL):
            asyncio.run(session.submit())
        st.rerun()

    # Error display
    if session.state.error:
        st.error(session.state.error)
        if st.button("Dismiss", key="dismiss-error"):
            session.dismiss_error()
            st.rerun()


# 4. Results View
def render_report(view: ReportView):
    st.caption("Deception Risk Score")
    st.markdown(f"# {view.score_text}")

    badge_text = f"{view.badge.icon} {view.badge.label}"
    if view.badge.severity == "low":
        st.success(badge_text)
    elif view.badge.severity == "medium":
        st.warning(badge_text)
    else:
        st.error(badge_text)
    st.caption(view.signal_count_text)

    st.subheader("📊 Analysis Explanation")
    st.write(view.explanation)

    if view.ai_segments is not None:
        st.subheader("🤖 AI Verification")
        if view.ai_verified:
            st.markdown(f"`✔ {VERIFIED_BADGE}`")
        st.markdown(segments_to_markdown(view.ai_segments))

    if view.signals:
        st.subheader("🔍 Detected Signals")
        for row in view.signals:
            with st.container(border=True):
                st.markdown(f"**{row.title}** · `{row.confidence_text}`")
                st.write(row.description)
                if row.evidence_text:
                    st.caption(f"Evidence: {row.evidence_text}")

    rec = view.recommendation
    st.subheader("💡 Recommended Action")
    st.markdown(f"{rec.action} `{rec.priority_label}`")
    if rec.steps:
        st.markdown("\n".join(f"- {step}" for step in rec.steps))
    if rec.review_required:
        st.warning(REVIEW_NOTICE, icon="⚠️")

    if view.disclaimer:
        st.info(view.disclaimer, icon="ℹ️")

    if st.button("➕ Analyze Another File", use_container_width=True):
        session.reset()
        _bump_nonce()
        st.rerun()


if session.state.status == "success" and session.state.result is not None:
    render_report(build_report(session.state.result, settings.max_signal_evidence_chars))
else:
    render_input_form()
