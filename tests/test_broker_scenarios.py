import re
from datetime import datetime

from pubsub_broker import BrokerSettings, MessageBroker, NamedTopic, PatternTopic


class Recorder:
    def __init__(self, sink=None):
        self._sink = sink if sink is not None else []
        self.calls = 0

    @property
    def result(self) -> str:
        return "".join(self._sink)

    def reset(self):
        self._sink.clear()
        self.calls = 0

    def append(self, s: str):
        self._sink.append(s)
        self.calls += 1


def make_broker() -> MessageBroker:
    return MessageBroker(BrokerSettings())


def check(broker, recorder, action, expected_calls, expected_result=None):
    recorder.reset()
    action(broker)
    assert recorder.calls == expected_calls
    if expected_result is not None:
        assert recorder.result == expected_result


STAMP = datetime(2020, 1, 1)


def test_named_no_param():
    rec = Recorder()

    def create():
        b = make_broker()
        b.subscribe(rec, "x", lambda: rec.append("A"))
        b.subscribe(rec, "y", lambda: rec.append("B"))
        return b

    broker = create()
    check(broker, rec, lambda b: b.publish("x"), 1, "A")
    check(broker, rec, lambda b: b.publish("y"), 1, "B")
    check(broker, rec, lambda b: b.publish("z"), 0)
    check(broker, rec, lambda b: b.publish_object(STAMP), 0)
    check(broker, rec, lambda b: b.publish_object(STAMP, topic="x"), 1, "A")

    broker = create()
    assert broker.unsubscribe(rec, "x") == 1
    check(broker, rec, lambda b: b.publish("x"), 0)
    check(broker, rec, lambda b: b.publish("y"), 1, "B")
    check(broker, rec, lambda b: b.publish_object(STAMP, topic="x"), 0)

    broker = create()
    assert broker.unsubscribe(rec) == 2
    check(broker, rec, lambda b: b.publish("x"), 0)
    check(broker, rec, lambda b: b.publish("y"), 0)


def test_regex_no_param():
    rec = Recorder()
    broker = make_broker()
    broker.subscribe(rec, "x", lambda: rec.append("A"))
    broker.subscribe(rec, "y", lambda: rec.append("B"))
    broker.subscribe(rec, re.compile("x|y"), lambda: rec.append("C"))

    check(broker, rec, lambda b: b.publish("x"), 2, "AC")
    check(broker, rec, lambda b: b.publish("y"), 2, "BC")
    check(broker, rec, lambda b: b.publish("z"), 0)
    check(broker, rec, lambda b: b.publish_object(STAMP), 0)
    check(broker, rec, lambda b: b.publish_object(STAMP, topic="x"), 2, "AC")

    # independently compiled, textually identical pattern selects the same subscription
    assert broker.unsubscribe(rec, re.compile("x|y", re.IGNORECASE)) == 1

    check(broker, rec, lambda b: b.publish("x"), 1, "A")
    check(broker, rec, lambda b: b.publish("y"), 1, "B")
    check(broker, rec, lambda b: b.publish_object(STAMP, topic="x"), 1, "A")


def test_typed_unnamed():
    rec = Recorder()

    def create():
        b = make_broker()
        b.subscribe_type(rec, str, lambda s: rec.append(f"A({s})"))
        b.subscribe_type(rec, int, lambda i: rec.append(f"B({i})"))
        return b

    broker = create()
    check(broker, rec, lambda b: b.publish_object("x"), 1, "A(x)")
    check(broker, rec, lambda b: b.publish_object(123), 1, "B(123)")
    check(broker, rec, lambda b: b.publish("X"), 0)
    check(broker, rec, lambda b: b.publish_object("z", topic="Z"), 1, "A(z)")
    check(broker, rec, lambda b: b.publish_object(123, topic="Z"), 1, "B(123)")
    check(broker, rec, lambda b: b.publish_object(STAMP), 0)
    check(broker, rec, lambda b: b.publish_object(STAMP, topic="x"), 0)

    broker = create()
    broker.unsubscribe(rec, message_type=str)
    check(broker, rec, lambda b: b.publish_object("x"), 0)
    check(broker, rec, lambda b: b.publish_object(123), 1, "B(123)")
    check(broker, rec, lambda b: b.publish_object("z", topic="Z"), 0)

    broker = create()
    broker.unsubscribe(rec)
    check(broker, rec, lambda b: b.publish_object("x"), 0)
    check(broker, rec, lambda b: b.publish_object(123), 0)


def test_typed_named():
    rec = Recorder()

    def create():
        b = make_broker()
        b.subscribe(rec, "A", lambda s: rec.append(f"A({s})"), str)
        b.subscribe(rec, "B", lambda i: rec.append(f"B({i})"), int)
        return b

    broker = create()
    check(broker, rec, lambda b: b.publish_object("x"), 0)
    check(broker, rec, lambda b: b.publish_object("x", topic="A"), 1, "A(x)")
    check(broker, rec, lambda b: b.publish_object("x", topic="B"), 0)
    check(broker, rec, lambda b: b.publish_object(123), 0)
    check(broker, rec, lambda b: b.publish_object(123, topic="A"), 0)
    check(broker, rec, lambda b: b.publish_object(123, topic="B"), 1, "B(123)")
    check(broker, rec, lambda b: b.publish("A"), 0)
    check(broker, rec, lambda b: b.publish("B"), 0)
    check(broker, rec, lambda b: b.publish_object(STAMP, topic="A"), 0)

    broker = create()
    broker.unsubscribe(rec, message_type=int)
    check(broker, rec, lambda b: b.publish_object("x", topic="A"), 1, "A(x)")
    check(broker, rec, lambda b: b.publish_object(123, topic="B"), 0)

    broker = create()
    broker.unsubscribe(rec, "A")
    check(broker, rec, lambda b: b.publish_object("x", topic="A"), 0)
    check(broker, rec, lambda b: b.publish_object(123, topic="B"), 1, "B(123)")

    broker = create()
    # topic matches but type does not: nothing removed
    assert broker.unsubscribe(rec, "A", int) == 0
    assert broker.unsubscribe(rec, "A", str) == 1
    check(broker, rec, lambda b: b.publish_object("x", topic="A"), 0)


def test_typed_regex():
    rec = Recorder()

    def create():
        b = make_broker()
        b.subscribe(rec, "A", lambda s: rec.append(f"A({s})"), str)
        b.subscribe(rec, "B", lambda i: rec.append(f"B({i})"), int)
        b.subscribe(rec, "C", lambda s: rec.append(f"B({s})"), str)
        b.subscribe_pattern(rec, "A|B", lambda i: rec.append(f"AB({i})"), int)
        b.subscribe_pattern(rec, "A|B", lambda s: rec.append(f"AB({s})"), str)
        b.subscribe_pattern(rec, "B|C", lambda i: rec.append(f"BC({i})"), int)
        b.subscribe_pattern(rec, "B|C", lambda s: rec.append(f"BC({s})"), str)
        return b

    broker = create()
    check(broker, rec, lambda b: b.publish_object("x"), 0)
    check(broker, rec, lambda b: b.publish_object("x", topic="A"), 2, "A(x)AB(x)")
    check(broker, rec, lambda b: b.publish_object("x", topic="B"), 2, "AB(x)BC(x)")
    check(broker, rec, lambda b: b.publish_object(123), 0)
    check(broker, rec, lambda b: b.publish_object(123, topic="A"), 1, "AB(123)")
    check(broker, rec, lambda b: b.publish_object(123, topic="B"), 3, "B(123)AB(123)BC(123)")
    check(broker, rec, lambda b: b.publish("A"), 0)
    check(broker, rec, lambda b: b.publish_object(STAMP, topic="B"), 0)

    broker = create()
    broker.unsubscribe(rec, re.compile("A|B"), str)
    check(broker, rec, lambda b: b.publish_object("x", topic="A"), 1, "A(x)")
    check(broker, rec, lambda b: b.publish_object("x", topic="B"), 1, "BC(x)")
    check(broker, rec, lambda b: b.publish_object(123, topic="A"), 1, "AB(123)")
    check(broker, rec, lambda b: b.publish_object(123, topic="B"), 3, "B(123)AB(123)BC(123)")


def test_multiple_types_on_one_topic():
    rec = Recorder()
    broker = make_broker()
    broker.subscribe(rec, "A", lambda i: rec.append(f"Ai({i})"), int)
    broker.subscribe(rec, "A", lambda s: rec.append(f"As({s})"), str)
    broker.subscribe(rec, "A", lambda o: rec.append(f"Ao({o})"), object)
    broker.subscribe(rec, "A", lambda: rec.append("A()"))

    check(broker, rec, lambda b: b.publish_object(123, topic="A"), 3, "Ai(123)Ao(123)A()")
    check(broker, rec, lambda b: b.publish_object("x", topic="A"), 3, "As(x)Ao(x)A()")
    check(broker, rec, lambda b: b.publish_object(123.0, topic="A"), 2, "Ao(123.0)A()")
    check(broker, rec, lambda b: b.publish("A"), 1, "A()")


def test_explicit_type_publish_uses_subclass_acceptance():
    class Base:
        pass

    class Derived(Base):
        pass

    rec = Recorder()
    broker = make_broker()
    broker.subscribe_type(rec, Base, lambda m: rec.append(type(m).__name__))
    broker.subscribe_type(rec, Derived, lambda m: rec.append("D"))

    check(broker, rec, lambda b: b.publish_object(Derived()), 2, "DerivedD")
    check(broker, rec, lambda b: b.publish_object(Base()), 1, "Base")
    check(broker, rec, lambda b: b.publish(None, Derived, Derived()), 2)


def test_dispatch_order_follows_subscribe_order():
    rec = Recorder()
    broker = make_broker()
    for label in "abcdef":
        broker.subscribe(rec, re.compile("t"), lambda label=label: rec.append(label), pass_payload=False)
    broker.subscribe(rec, "other", lambda: rec.append("X"))

    check(broker, rec, lambda b: b.publish("topic"), 6, "abcdef")


def test_payload_only_publish_reaches_topicless_matchers():
    rec = Recorder()
    broker = make_broker()
    broker.subscribe(rec, NamedTopic(None), lambda v: rec.append(f"N({v})"), int)
    broker.subscribe(rec, PatternTopic(None), lambda v: rec.append(f"P({v})"), int)
    broker.subscribe_type(rec, int, lambda v: rec.append(f"T({v})"))
    broker.subscribe(rec, "named", lambda v: rec.append("X"), int)
    broker.subscribe_pattern(rec, ".", lambda v: rec.append("Y"), int)

    check(broker, rec, lambda b: b.publish_object(7), 3, "N(7)P(7)T(7)")
    check(broker, rec, lambda b: b.publish_object(7, topic="named"), 5, "N(7)P(7)T(7)XY")
