from __future__ import annotations

import argparse
import os
from typing import List, Optional

from .api import ApiError, ChatApiClient
from .session import ChatSession, StreamInProgressError
from .storage import LocalStorage

HELP = """Commands:
  /providers               list enabled providers
  /provider <name>         switch provider
  /models                  list models for the current provider
  /model <id>              set the model id
  /temp <0-2>              set temperature
  /max <256-8192>          set max tokens
  /prompts                 list system prompts
  /prompt <id>             use a system prompt
  /prompt-new <name> | <text>
  /prompt-edit <id> <name> | <text>
  /prompt-del <id>
  /settings                show current settings
  /history                 print the saved conversation
  /clear                   clear the conversation
  /quit                    exit"""


def _print_fragment(fragment: str) -> None:
    print(fragment, end="", flush=True)


def _split_prompt_args(rest: str) -> tuple[str, str]:
    name, sep, text = rest.partition("|")
    if not sep or not name.strip() or not text.strip():
        raise ValueError("usage: <name> | <prompt text>")
    return name.strip(), text.strip()


def handle_command(session: ChatSession, line: str) -> bool:
    """Run one slash command. Returns False when the user asked to quit."""
    cmd, _, rest = line.partition(" ")
    rest = rest.strip()

    if cmd in {"/quit", "/exit"}:
        return False
    if cmd == "/help":
        print(HELP)
    elif cmd == "/providers":
        session.sync_providers()
        if not session.providers:
            print("No providers available.")
        for p in session.providers:
            marker = "*" if p["name"] == session.settings.provider else " "
            print(f" {marker} {p['name']}  ({p.get('docsUrl') or 'no docs'})")
    elif cmd == "/provider":
        session.select_provider(rest)
        print(f"provider={session.settings.provider} (set a model with /model)")
    elif cmd == "/models":
        result = session.api.list_models(session.settings.provider)
        if not result.get("supported"):
            print(f"Model listing not supported; see {result.get('docsUrl')}")
        elif result.get("error"):
            print(f"Could not list models: {result['error']}. Type a model id with /model.")
        else:
            for name in result.get("models", []):
                print(f"  {name}")
    elif cmd == "/model":
        session.update_settings(model=rest)
        print(f"model={session.settings.model}")
    elif cmd == "/temp":
        session.update_settings(temperature=float(rest))
        print(f"temperature={session.settings.temperature}")
    elif cmd == "/max":
        session.update_settings(max_tokens=int(rest))
        print(f"maxTokens={session.settings.max_tokens}")
    elif cmd == "/prompts":
        session.load_prompts()
        active = session.active_prompt
        for p in session.prompts:
            marker = "*" if active and p["id"] == active["id"] else " "
            badge = " [default]" if p.get("isDefault") else ""
            print(f" {marker} {p['id']}: {p['name']}{badge}")
    elif cmd == "/prompt":
        prompt = session.select_prompt(rest)
        print(f"Using prompt: {prompt['name']}")
    elif cmd == "/prompt-new":
        prompt = session.create_prompt(*_split_prompt_args(rest))
        print(f"Created {prompt['id']}")
    elif cmd == "/prompt-edit":
        prompt_id, _, args = rest.partition(" ")
        prompt = session.update_prompt(prompt_id, *_split_prompt_args(args))
        print(f"Updated {prompt['id']}")
    elif cmd == "/prompt-del":
        session.delete_prompt(rest)
        print(f"Deleted {rest}")
    elif cmd == "/settings":
        for key, value in session.settings.to_dict().items():
            print(f"  {key}: {value}")
    elif cmd == "/history":
        for m in session.messages:
            print(f"{m.role}> {m.content}")
    elif cmd == "/clear":
        session.clear()
        print("Conversation cleared.")
    else:
        print(f"Unknown command {cmd}. Type /help.")
    return True


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Terminal chat client for the LLM chat relay.")
    parser.add_argument("--server", default=os.environ.get("CHAT_KIT_SERVER", "http://127.0.0.1:8000"), help="Relay base URL.")
    parser.add_argument("--storage-dir", default=None, help="Where settings and the conversation are saved.")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    session = ChatSession(ChatApiClient(args.server), LocalStorage(args.storage_dir))

    try:
        session.sync_providers()
        session.load_prompts()
    except ApiError as exc:
        print(f"Error: {exc}")
        return

    if not session.providers:
        print("No providers available.")
        return

    print(f"Chat ready ({session.settings.provider}). Type /help for commands, /quit to exit.")
    if not session.settings.model:
        print("No model selected yet: use /models and /model <id>.")

    while True:
        try:
            user_input = input("you> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            break
        if not user_input:
            continue

        if user_input.startswith("/"):
            try:
                if not handle_command(session, user_input):
                    break
            except (ApiError, ValueError, KeyError) as exc:
                print(f"Error: {exc}")
            continue

        print("bot> ", end="", flush=True)
        try:
            reply = session.send(user_input, on_fragment=_print_fragment)
        except StreamInProgressError as exc:
            print(f"Error: {exc}")
            continue
        if reply.content.startswith("Error: "):
            print(reply.content, end="")
        print()


if __name__ == "__main__":
    main()
