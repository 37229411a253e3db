# daylog/main.py
"""
Daylog CLI entrypoint.

Subcommands:
- chat  : text in -> DailyChatCore -> text out, for one day
- serve : run the HTTP API with uvicorn

Slash commands inside `chat`:
  /chat /log      switch mode
  /entry          generate or update the day's entry
  /summary        reflective summary of the session
  /status         entry/summary state
  /regen          redo the last reply
  /clear          clear the day's chat
  /quit           leave
"""

from __future__ import annotations

import argparse
import time
from typing import List, Optional, Set

from daylog.config.settings import load_settings
from daylog.core.chat import DailyChatCore
from daylog.core.scheduler import ManualReplyScheduler
from daylog.memory.models import ChatMessage, ChatMode, now_utc

QUIT_COMMANDS = {"/quit", "/exit", "exit", "quit"}


def _print_new(messages: List[ChatMessage], seen: Set[str]) -> None:
    for msg in messages:
        if msg.id in seen:
            continue
        seen.add(msg.id)
        if msg.is_user:
            continue
        if msg.is_system_notification:
            print(f"[{msg.notification_title}] {msg.content}")
        else:
            print(f"Daylog: {msg.content}")


def _wait_for_replies(core: DailyChatCore, scheduler: ManualReplyScheduler, day, simulate_delay: bool) -> None:
    pending = scheduler.pending(core.day_key(day))
    if not pending:
        return
    if simulate_delay:
        print("Daylog is thinking...")
        time.sleep(max(t.delay for t in pending))
    scheduler.run_pending(core.day_key(day))


def run_chat(args: argparse.Namespace) -> None:
    settings = load_settings()
    if args.seed is not None:
        settings.random_seed = args.seed

    scheduler = ManualReplyScheduler()
    core = DailyChatCore.from_settings(settings, scheduler=scheduler)
    try:
        day = core.day_key(args.day) if args.day else core.day_key(now_utc())
    except ValueError:
        raise SystemExit(f"Invalid --day {args.day!r}; expected YYYY-MM-DD.")

    if args.mode == "log":
        core.default_mode = ChatMode.LOG

    seen: Set[str] = {m.id for m in core.get_messages(day)}

    print(f"Daylog for {day.weekday_name}, {day}. Type /quit to leave.\n")
    print(f"[Mode: {core.get_mode(day).value}]\n")

    while True:
        try:
            line = input("You: ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\n[Session ended]")
            break

        cmd = line.lower()
        if cmd in QUIT_COMMANDS:
            print("[Session ended]")
            break

        if cmd == "/chat":
            core.set_mode(day, ChatMode.CHAT)
        elif cmd == "/log":
            core.set_mode(day, ChatMode.LOG)
        elif cmd == "/entry":
            draft = core.generate_or_update_entry(day)
            print(f"[{draft.action.value}] {draft.title}\n\n{draft.body}\n")
        elif cmd == "/summary":
            print(f"Summary: {core.generate_summary(day)}\n")
        elif cmd == "/status":
            status = core.status(day)
            print(
                f"[status] action={core.entry_action(day).value} has_entry={status.has_entry} "
                f"has_summary={status.has_summary} snapshot={status.entry_message_count_at_creation} "
                f"user_messages={core.sessions.user_message_count(day)}"
            )
        elif cmd == "/regen":
            if core.regenerate_response(day) is None:
                print("[Nothing to regenerate]")
        elif cmd == "/clear":
            core.clear_session(day)
            seen.clear()
            print("[Chat cleared]")
        else:
            core.append_user_message(day, line)

        _print_new(core.get_messages(day), seen)
        _wait_for_replies(core, scheduler, day, simulate_delay=not args.no_delay)
        _print_new(core.get_messages(day), seen)


def run_serve(args: argparse.Namespace) -> None:
    import uvicorn

    uvicorn.run("daylog.api.server:app", host=args.host, port=args.port, reload=False)


# -----------------------------
# CLI main
# -----------------------------

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Daylog: daily chat sessions with entry tracking.")
    sub = p.add_subparsers(dest="command")

    chat = sub.add_parser("chat", help="Chat about a day in the terminal.")
    chat.add_argument("--day", default=None, help="Day to open (YYYY-MM-DD). Default: today.")
    chat.add_argument("--mode", default="chat", choices=["chat", "log"], help="Starting mode.")
    chat.add_argument("--seed", type=int, default=None, help="Seed for reply selection.")
    chat.add_argument("--no-delay", action="store_true", help="Skip the simulated thinking delay.")
    chat.set_defaults(func=run_chat)

    serve = sub.add_parser("serve", help="Run the HTTP API.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.set_defaults(func=run_serve)
    return p


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return
    args.func(args)


if __name__ == "__main__":
    main()
