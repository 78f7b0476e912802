import sys
import os
import threading
import time
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from core.js_treesitter_parser import generate_code, parse_source
from core.syntax_tree import NodeKind
from core.transform_cache import TransformCache


def first_literal(root):
    stack = [root]
    while stack:
        node = stack.pop()
        if node.kind is NodeKind.STRING_LITERAL:
            return node
        stack.extend(node.child_nodes())
    raise AssertionError('no string literal')


def mark(body):
    first_literal(body).set_literal_value('done')


def test_miss_transforms_in_place_and_stores_a_copy():
    cache = TransformCache()
    body = parse_source('x = { a: "1" };')
    result, reused = cache.resolve('k', body, mark)
    assert result is body
    assert reused is False
    assert generate_code(body) == 'x = { a: "done" };'
    assert 'k' in cache
    assert len(cache) == 1
    # later edits to the call site do not reach the stored copy
    first_literal(body).set_literal_value('edited')
    assert generate_code(cache.get('k')) == 'x = { a: "done" };'


def test_hit_returns_a_fresh_clone_without_transforming():
    cache = TransformCache()
    cache.resolve('k', parse_source('x = { a: "1" };'), mark)

    calls = []
    fresh = parse_source('x = { a: "1" };')
    first, reused = cache.resolve('k', fresh, calls.append)
    second, _ = cache.resolve('k', parse_source('x = { a: "1" };'), calls.append)

    assert reused is True
    assert calls == []
    assert first is not fresh
    assert first is not second
    assert generate_code(first) == 'x = { a: "done" };'
    first_literal(first).set_literal_value('mutated')
    assert generate_code(second) == 'x = { a: "done" };'
    assert cache.hits == 2
    assert cache.misses == 1


def test_seen_without_entry_is_transformed_again():
    cache = TransformCache()
    cache._seen.add('k')
    body = parse_source('x = { a: "1" };')
    result, reused = cache.resolve('k', body, mark)
    assert reused is False
    assert result is body
    assert 'k' in cache


def test_get_unknown_fingerprint():
    assert TransformCache().get('missing') is None


def test_concurrent_resolution_transforms_once():
    cache = TransformCache()
    calls = []
    lock = threading.Lock()

    def slow_mark(body):
        with lock:
            calls.append(1)
        time.sleep(0.05)
        mark(body)

    results = []

    def worker():
        result, _ = cache.resolve('shared', parse_source('x = { a: "1" };'), slow_mark)
        results.append(generate_code(result))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(calls) == 1
    assert results == ['x = { a: "done" };'] * 8


def test_counters_add_up_across_keys_and_threads():
    cache = TransformCache()
    rounds = 50

    def worker(key):
        for _ in range(rounds):
            cache.resolve(key, parse_source('x = { a: "1" };'), mark)

    threads = [threading.Thread(target=worker, args=(f'key-{i}',)) for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert cache.misses == 8
    assert cache.hits == 8 * (rounds - 1)
    assert len(cache) == 8
