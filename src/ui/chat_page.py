"""NiceGUI chat interface driving a streamed Conversation."""

import base64
import os

from nicegui import app, events, ui

from src.client.conversation import Conversation
from src.client.stream import StreamConsumer, default_relay_url
from src.models.schemas import ConversationTurn

RELAY_URL = default_relay_url()

CHAT_STORAGE_KEY = "ai_assistant_chat_history"
SETTINGS_STORAGE_KEY = "ai_assistant_settings"
ERROR_NOTICE = "⚠️ Xatolik yuz berdi. Qayta urinib ko'ring."

CUSTOM_CSS = """
<style>
    .message-user {
        background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
        color: white;
        border-radius: 18px 18px 4px 18px;
    }
    .message-assistant {
        background: #f3f4f6;
        color: #1f2937;
        border-radius: 18px 18px 18px 4px;
    }
    .body--dark .message-assistant { background: #1f2937; color: #f3f4f6; }
    .message-error { color: #dc2626; font-size: 0.75rem; }
</style>
"""


@ui.page("/")
def chat_page() -> None:
    """Main chat page."""
    ui.add_head_html(CUSTOM_CSS)

    storage = app.storage.user
    settings = storage.setdefault(SETTINGS_STORAGE_KEY, {"darkMode": False})
    conversation = Conversation.from_storage(
        storage.get(CHAT_STORAGE_KEY),
        consumer=StreamConsumer(RELAY_URL),
    )
    dark = ui.dark_mode(settings["darkMode"])
    pending_image: dict[str, str | None] = {"data_uri": None}

    messages_container: ui.column
    input_field: ui.textarea
    send_btn: ui.button
    image_badge: ui.label

    def save() -> None:
        storage[CHAT_STORAGE_KEY] = conversation.to_storage()

    def render_turn(turn: ConversationTurn) -> None:
        is_user = turn.role == "user"
        align = "justify-end" if is_user else "justify-start"
        bubble = "message-user" if is_user else "message-assistant"

        with ui.row().classes(f"w-full {align}"), ui.column().classes("max-w-[75%] gap-1"):
            with ui.element("div").classes(f"px-4 py-3 {bubble}"):
                if turn.image:
                    ui.image(turn.image).classes("w-48 rounded mb-2")
                if turn.content:
                    ui.markdown(turn.content).classes("text-sm")
                elif not is_user and conversation.is_typing:
                    ui.spinner("dots")
            if turn.error:
                ui.label(ERROR_NOTICE).classes("message-error")
            ui.label(turn.created_at.astimezone().strftime("%H:%M")).classes(
                "text-[10px] text-gray-400"
            )

    def refresh_messages() -> None:
        messages_container.clear()
        with messages_container:
            if not conversation.turns:
                with ui.column().classes("w-full h-64 items-center justify-center gap-3"):
                    ui.icon("auto_awesome").classes("text-5xl text-gray-300")
                    ui.label("Salom! Men Artificial. Nima haqida gaplashamiz?").classes(
                        "text-lg text-gray-400"
                    )
            for turn in conversation.turns:
                render_turn(turn)

    async def handle_upload(e: events.UploadEventArguments) -> None:
        content = await e.file.read()
        encoded = base64.b64encode(content).decode("ascii")
        pending_image["data_uri"] = f"data:{e.file.content_type};base64,{encoded}"
        image_badge.set_text(f"📎 {e.file.name}")

    async def send_message() -> None:
        text = input_field.value.strip()
        if not text or conversation.is_typing:
            return

        image = pending_image["data_uri"]
        pending_image["data_uri"] = None
        image_badge.set_text("")
        input_field.value = ""
        send_btn.disable()

        def on_update(turn: ConversationTurn) -> None:
            refresh_messages()
            if turn.error:
                ui.notify(turn.error, type="negative")

        try:
            await conversation.send(text, image=image, on_update=on_update)
        finally:
            save()
            send_btn.enable()
            refresh_messages()

    def clear_chat() -> None:
        conversation.clear()
        save()
        refresh_messages()

    def toggle_dark() -> None:
        dark.value = not dark.value
        settings["darkMode"] = dark.value
        storage[SETTINGS_STORAGE_KEY] = settings

    # === UI Layout ===
    with ui.column().classes("w-full max-w-3xl mx-auto h-screen p-4"):
        with ui.row().classes("w-full items-center justify-between"):
            ui.label("Artificial").classes("text-xl font-semibold")
            with ui.row().classes("gap-1"):
                ui.button(icon="dark_mode", on_click=toggle_dark).props("flat round")
                ui.button(icon="delete_sweep", on_click=clear_chat).props("flat round")

        with ui.scroll_area().classes("flex-grow w-full"):
            messages_container = ui.column().classes("w-full gap-4")
            refresh_messages()

        image_badge = ui.label("").classes("text-xs text-gray-500")
        with ui.row().classes("w-full gap-2 items-end"):
            ui.upload(on_upload=handle_upload, auto_upload=True, max_files=1).props(
                "accept=image/* flat"
            ).classes("w-32")
            input_field = (
                ui.textarea(placeholder="Xabar yozing...")
                .props("autogrow outlined dense rows=1")
                .classes("flex-grow")
                .on("keydown.enter.prevent", send_message)
            )
            send_btn = ui.button(icon="send", on_click=send_message).props("round unelevated")


def main() -> None:
    ui.run(
        title="Artificial",
        port=int(os.getenv("UI_PORT", "8080")),
        reload=False,
        storage_secret=os.getenv("NICEGUI_STORAGE_SECRET", "artificial-chat-secret"),
    )


if __name__ == "__main__":
    main()
