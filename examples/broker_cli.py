from __future__ import annotations

import json
import re

from pubsub_broker import BrokerSettings, MessageBroker


class Listener:
    """Prints whatever arrives; subscriptions die with it."""

    def __init__(self, label: str):
        self.label = label

    def on_message(self, payload):
        print(f"[{self.label}] <- {payload!r}")


def main():
    broker = MessageBroker(BrokerSettings.from_env())
    listeners = {}
    print("Broker ready. Type /quit to exit. Examples:")
    print("  /sub orders            (exact topic)")
    print("  /re  orders\\..*        (regex topic)")
    print("  /pub orders {\"id\": 1}")
    print("  /drop orders           (release the listener)")
    print("  /list")

    while True:
        user_input = input("broker> ").strip()
        if user_input.lower() in {"/quit", "quit", "exit"}:
            break

        cmd, _, rest = user_input.partition(" ")
        rest = rest.strip()
        try:
            if cmd == "/sub":
                listener = listeners.setdefault(rest, Listener(rest))
                broker.subscribe(listener, rest, listener.on_message)
                del listener
            elif cmd == "/re":
                listener = listeners.setdefault(rest, Listener(rest))
                broker.subscribe(listener, re.compile(rest), listener.on_message)
                del listener
            elif cmd == "/pub":
                topic, _, raw = rest.partition(" ")
                payload = json.loads(raw) if raw else None
                broker.publish_object(payload, topic=topic)
            elif cmd == "/drop":
                listeners.pop(rest, None)
            elif cmd == "/list":
                for info in broker.describe():
                    print(" ", info.model_dump())
            else:
                print("Unknown command")
        except Exception as exc:
            print(f"Error: {exc}")


if __name__ == "__main__":
    main()
