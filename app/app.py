"""
UI layer
Purpose: Streamlit-only glue. Renders the settings form and the chat view,
collects user input, and delegates every turn to the controller. The page
holds no conversation state of its own: it redraws from the transcript
snapshot and reflects controller events through StreamlitSurface.
"""

import streamlit as st

from toolkit_chat.config import (
    CHAT_API_KEY,
    CHAT_BASE_URL,
    CHAT_MODEL,
    CHAT_TIMEOUT_SECONDS,
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    FAILED_TURN_POLICY,
)
from toolkit_chat.controller import ChatSession, ChatSessionController
from toolkit_chat.errors import InvalidInput
from toolkit_chat.models import Role
from toolkit_chat.services.llm_openai import OpenAIStreamingChannel
from toolkit_chat.services.validation import DefaultValidator
from toolkit_chat.surface import StreamlitSurface


# ---------------------------
# Page config
# ---------------------------
st.set_page_config(
    page_title="Toolkit Chat",
    page_icon="💬",
    layout="centered",
)

# ---------------------------
# Session state init
# ---------------------------
st_session = st.session_state
st_session.setdefault("controller", None)
st_session.setdefault("channel", None)
st_session.setdefault("input_enabled", True)
st_session.setdefault("pending_text", None)
st_session.setdefault("flash_error", None)

validator = DefaultValidator()


# ---------------------------
# Helpers
# ---------------------------
def get_controller():
    """Return the controller object."""
    return st_session.get("controller")


def get_channel() -> OpenAIStreamingChannel:
    """Build the streaming channel once per browser session."""
    if st_session.channel is None:
        st_session.channel = OpenAIStreamingChannel(
            api_key=CHAT_API_KEY,
            base_url=CHAT_BASE_URL,
            model=CHAT_MODEL,
            timeout=CHAT_TIMEOUT_SECONDS,
        )
    return st_session.channel


def start_session(settings) -> None:
    """Discard any previous session and begin a fresh one."""
    session = ChatSession(settings)
    # The chat view swaps in a surface bound to its transcript container.
    st_session.controller = ChatSessionController(
        session,
        get_channel(),
        StreamlitSurface(None, session, FAILED_TURN_POLICY),
        failure_policy=FAILED_TURN_POLICY,
        validator=validator,
    )
    st_session.input_enabled = True
    st_session.pending_text = None
    st_session.flash_error = None


def reset_session() -> None:
    """Start again: drop the session and go back to the settings form."""
    st_session.controller = None
    st_session.input_enabled = True
    st_session.pending_text = None
    st_session.flash_error = None


def render_transcript(container, session: ChatSession) -> None:
    """Redraw every settled turn from the transcript snapshot."""
    with container:
        for turn in session.store.snapshot():
            if turn.role is Role.SYSTEM:
                continue
            speaker = (
                session.user_name if turn.role is Role.USER else session.assistant_name
            )
            with st.chat_message(turn.role.value):
                st.markdown(f"**{speaker}:**")
                if turn.content:
                    st.text(turn.content)
                if turn.failed:
                    st.error(f"Error: {turn.error}")


# ---------------------------
# SETTINGS VIEW
# ---------------------------
controller = get_controller()

if controller is None:
    st.title("Toolkit Chat")
    st.caption(f"Model: **{CHAT_MODEL}** at {CHAT_BASE_URL}")

    with st.form("settings"):
        user_name = st.text_input("Your name", placeholder="User")
        system_prompt = st.text_area(
            "System prompt (optional)",
            placeholder="e.g. You are a concise assistant.",
        )
        c1, c2 = st.columns(2)
        temperature = c1.number_input(
            "Temperature",
            min_value=0.0,
            max_value=2.0,
            value=DEFAULT_TEMPERATURE,
            step=0.1,
        )
        max_tokens = c2.number_input(
            "Max tokens", min_value=1, value=DEFAULT_MAX_TOKENS, step=50
        )
        submitted = st.form_submit_button("Start chat", type="primary")

    if submitted:
        try:
            settings = validator.parse_settings(
                user_name=user_name,
                system_directive=system_prompt,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except InvalidInput as e:
            st.error(str(e))
            st.stop()
        try:
            start_session(settings)
        except Exception as e:
            st.error(f"Chat client init failed: {e}")
            st.stop()
        st.rerun()
    st.stop()


# ---------------------------
# CHAT VIEW
# ---------------------------
session = controller.session

head, reset_col = st.columns([4, 1])
with head:
    st.subheader(f"Chatting as {session.user_name}")
    st.caption(
        f"Temperature **{session.parameters.temperature}** · "
        f"Max tokens **{session.parameters.max_tokens}**"
    )
with reset_col:
    if st.button("Start again", disabled=st_session.pending_text is not None):
        reset_session()
        st.rerun()

if st_session.flash_error:
    st.toast(f"Last reply failed: {st_session.flash_error}", icon="⚠️")
    st_session.flash_error = None

transcript = st.container(height=500, border=True)
render_transcript(transcript, session)

busy = st_session.pending_text is not None or not st_session.input_enabled
raw = st.chat_input("Type your message…", disabled=busy)
if raw is not None and raw.strip() and not busy:
    st_session.pending_text = raw
    st.rerun()

if st_session.pending_text is not None:
    text = st_session.pending_text
    st_session.pending_text = None
    controller.surface = StreamlitSurface(
        transcript, session, controller.failure_policy
    )
    try:
        controller.send_turn(text)
    except InvalidInput as e:
        st.toast(str(e), icon="⚠️")
    st.rerun()

st.divider()
st.caption("Conversations live only in this browser session.")
