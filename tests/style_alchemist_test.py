import sys
import os
import pytest
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from core.js_treesitter_parser import generate_code, parse_source
from core.style_alchemist import StyleAlchemist
from core.style_engine import CallableStyleEngine
from core.syntax_tree import NodeKind
from core.transform_cache import TransformCache
from core.tree_walker import iter_tree

BLOCK = '{ color: "red", Hover: { color: "blue" } }'


class RecordingEngine:
    def __init__(self, fail_on=()):
        self.calls = []
        self.fail_on = set(fail_on)

    def transform(self, property_name, value, module_scoped, file_path, pseudo_group):
        self.calls.append((property_name, value, module_scoped, file_path, pseudo_group))
        if property_name in self.fail_on:
            raise RuntimeError('engine failure')
        return f'{pseudo_group or "_"}-{property_name}-{len(self.calls)}'


def style_bodies(root):
    return [n.get('arguments')[0].get('body') for n in iter_tree(root)
            if n.is_call() and n.get('callee').is_identifier('craftingStyles')]


def test_identical_blocks_invoke_the_engine_once():
    engine = RecordingEngine()
    alchemist = StyleAlchemist(engine)
    code = (
        f'const a = craftingStyles(() => ({BLOCK}));\n'
        'const b = craftingStyles(() => ({ color: "red", Hover: {color:"blue"} }));\n'
        f'const c = craftingStyles(() => (\n  {BLOCK}\n));\n'
    )
    report = alchemist.transform_source(code, 'src/app.js')
    assert len(engine.calls) == 2
    assert report.call_sites == 3
    assert report.transformed == 1
    assert report.reused == 2
    lines = report.code.splitlines()
    assert lines[0] == 'const a = craftingStyles(() => ({ color: "_-color-1", Hover: { color: "Hover-color-2" } }));'
    # reused call sites receive the cached text, layout included
    assert lines[1] == lines[0].replace('const a', 'const b')


def test_reused_bodies_are_independent_copies():
    alchemist = StyleAlchemist(RecordingEngine())
    root = parse_source(f'craftingStyles(() => ({BLOCK})); craftingStyles(() => ({BLOCK}));')
    alchemist.transform_tree(root, 'a.js')
    first, second = style_bodies(root)
    assert first is not second
    assert generate_code(first) == generate_code(second)


def test_tokens_are_pinned_to_the_first_file():
    engine = RecordingEngine()
    cache = TransformCache()
    alchemist = StyleAlchemist(engine, cache)
    one = alchemist.transform_source(f'export default craftingStyles(() => ({BLOCK}));', 'one.js')
    two = alchemist.transform_source(f'const s = craftingStyles(() => ({BLOCK}));', 'two.js')
    assert {c[3] for c in engine.calls} == {'one.js'}
    assert len(engine.calls) == 2
    assert two.reused == 1
    token_part = one.code[one.code.index('(() =>'):]
    assert two.code.endswith(token_part)


def test_shared_cache_spans_alchemists():
    engine = RecordingEngine()
    cache = TransformCache()
    StyleAlchemist(engine, cache).transform_source(f'craftingStyles(() => ({BLOCK}));', 'a.js')
    StyleAlchemist(engine, cache).transform_source(f'craftingStyles(() => ({BLOCK}));', 'b.js')
    assert len(engine.calls) == 2
    assert cache.hits == 1


def test_engine_failure_does_not_stop_other_call_sites():
    engine = RecordingEngine(fail_on={'broken'})
    alchemist = StyleAlchemist(engine)
    code = ('a = craftingStyles(() => ({ broken: "x", color: "red" }));\n'
            'b = craftingStyles(() => ({ margin: "0" }));\n')
    report = alchemist.transform_source(code, 'a.js')
    assert report.call_sites == 2
    assert report.code == ('a = craftingStyles(() => ({ broken: "x", color: "_-color-2" }));\n'
                           'b = craftingStyles(() => ({ margin: "_-margin-3" }));\n')


def test_function_expression_bodies_are_transformed():
    engine = RecordingEngine()
    report = StyleAlchemist(engine).transform_source(
        'const s = craftingStyles(function () {\n  return { color: "red" };\n});\n', 'a.js')
    assert report.code == 'const s = craftingStyles(function () {\n  return { color: "_-color-1" };\n});\n'


def test_module_scoping_flag_is_forwarded():
    engine = RecordingEngine()
    StyleAlchemist(engine, module_scoped=True).transform_source('craftingStyles(() => ({ color: "red" }));', 'a.js')
    assert engine.calls == [('color', '"red"', True, 'a.js', '')]


def test_visit_ignores_other_nodes():
    engine = RecordingEngine()
    alchemist = StyleAlchemist(engine)
    root = parse_source('foo(() => ({ color: "red" }));')
    assert not any(alchemist.visit(node, 'a.js') for node in iter_tree(root))
    assert engine.calls == []


def test_code_without_style_calls_is_unchanged():
    code = 'import React from "react";\nexport const x = { color: "red" };\n'
    report = StyleAlchemist(RecordingEngine()).transform_source(code, 'a.js')
    assert report.call_sites == 0
    assert report.code == code


def test_typescript_file():
    engine = RecordingEngine()
    code = 'const s: string = craftingStyles(() => ({ color: "red" } as const));\n'
    report = StyleAlchemist(engine).transform_source(code, 'a.ts')
    assert report.code == 'const s: string = craftingStyles(() => ({ color: "_-color-1" } as const));\n'


def test_process_file_respects_exclusions(tmp_path):
    (tmp_path / 'tests').mkdir()
    (tmp_path / 'src').mkdir()
    excluded = tmp_path / 'tests' / 'foo.js'
    included = tmp_path / 'src' / 'tests.js'
    excluded.write_text('craftingStyles(() => ({ color: "red" }));', encoding='utf-8')
    included.write_text('craftingStyles(() => ({ color: "blue" }));', encoding='utf-8')

    engine = RecordingEngine()
    alchemist = StyleAlchemist(engine, exclude=['tests'], root_dir=tmp_path)
    skipped = alchemist.process_file(excluded)
    processed = alchemist.process_file(included)

    assert skipped.excluded is True
    assert skipped.code is None
    assert processed.excluded is False
    assert processed.code == 'craftingStyles(() => ({ color: "_-color-1" }));'
    assert [c[3] for c in engine.calls] == [str(included)]


def test_process_file_propagates_missing_files(tmp_path):
    alchemist = StyleAlchemist(CallableStyleEngine(lambda *_: 'x'), root_dir=tmp_path)
    with pytest.raises(FileNotFoundError):
        alchemist.process_file(tmp_path / 'missing.js')


def test_object_literal_outside_calls_is_not_transformed():
    engine = RecordingEngine()
    root = parse_source('const s = craftingStyles(() => ({ color: "red" })); const o = { color: "red" };')
    StyleAlchemist(engine).transform_tree(root, 'a.js')
    literals = [n for n in iter_tree(root) if n.kind is NodeKind.OBJECT_LITERAL]
    assert len(literals) == 2
    assert generate_code(root).endswith('const o = { color: "red" };')


def test_exclusions_default_to_the_working_directory(tmp_path, monkeypatch):
    (tmp_path / 'tests').mkdir()
    excluded = tmp_path / 'tests' / 'foo.js'
    excluded.write_text('craftingStyles(() => ({ color: "red" }));', encoding='utf-8')
    monkeypatch.chdir(tmp_path)

    engine = RecordingEngine()
    report = StyleAlchemist(engine, exclude=['tests']).process_file(excluded)

    assert report.excluded is True
    assert engine.calls == []
