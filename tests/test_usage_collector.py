"""Tests for translation key discovery."""
from intlscan.analyzer.usage_collector import AnalyzedKey, discover_accessors, discover_usages


def keys_of(results):
    return [r.key for r in results]


class TestLiteralKeys:
    """Keys written at the call site."""

    def test_keys_prefixed_with_namespace(self):
        code = """
const t = useTranslations('auth');
const title = t('login.title');
const desc = t('login.description');
"""
        results = discover_usages(code, {'t': 'auth'})

        assert keys_of(results) == ['auth.login.title', 'auth.login.description']
        assert results[0].variable_name == 't'
        assert results[0].namespace == 'auth'
        assert results[0].quoted is True

    def test_rich_markup_and_raw(self):
        code = """
t.rich('welcome', { name: 'John' });
t.markup('markup');
t.raw('raw');
"""
        results = discover_usages(code, {'t': 'common'})
        assert keys_of(results) == ['common.welcome', 'common.markup', 'common.raw']
        assert {r.variable_name for r in results} == {'t'}

    def test_other_methods_ignored(self):
        code = """
t.has('exists');
t.other('nope');
t['rich']('computed');
"""
        assert discover_usages(code, {'t': 'common'}) == []

    def test_multiple_variables(self):
        code = """
const title = t('title');
const commonLabel = common('label');
"""
        results = discover_usages(code, {'t': 'auth', 'common': 'common'})
        assert [(r.variable_name, r.key) for r in results] == [('t', 'auth.title'), ('common', 'common.label')]

    def test_static_template_key(self):
        results = discover_usages("const message = t(`static.key`);", {'t': 'common'})
        assert keys_of(results) == ['common.static.key']
        assert results[0].quoted is True

    def test_as_const_key(self):
        results = discover_usages("t('login.title' as const);", {'t': 'auth'})
        assert keys_of(results) == ['auth.login.title']

    def test_empty_namespace_returns_bare_key(self):
        results = discover_usages("t('title');", {'t': ''})
        assert keys_of(results) == ['title']

    def test_unknown_variable_ignored(self):
        assert discover_usages("x('title'); console.log('y');", {'t': 'auth'}) == []

    def test_call_without_arguments(self):
        assert discover_usages("t();", {'t': 'auth'}) == []

    def test_custom_delimiter(self):
        results = discover_usages("t('title');", {'t': 'auth'}, delimiter=':')
        assert keys_of(results) == ['auth:title']


class TestPropagatedKeys:
    """Keys reached through constants."""

    def test_variable_key(self):
        code = """
const key = 'login.title';
t(key);
"""
        results = discover_usages(code, {'t': 'auth'})
        assert keys_of(results) == ['auth.login.title']
        assert results[0].quoted is False
        assert results[0].variable_name == 't'

    def test_static_template_variable(self):
        code = """
const key = `login.title`;
t(key);
"""
        results = discover_usages(code, {'t': 'auth'})
        assert keys_of(results) == ['auth.login.title']
        assert results[0].quoted is False

    def test_unknown_variable_key_yields_nothing(self):
        assert discover_usages("t(someUnknownVar);", {'t': 'auth'}) == []

    def test_shadowed_keys(self):
        code = """
const key = 'global.key';
function A() {
  t(key);
}
function B() {
  const key = 'local.key';
  t(key);
}
"""
        results = discover_usages(code, {'t': 'common'})
        assert keys_of(results) == ['common.global.key', 'common.local.key']


class TestScopedNamespaces:
    """The accessor declaration in scope decides the namespace."""

    def test_each_function_uses_its_own_accessor(self):
        code = """
function A() {
  const t = useTranslations('ns1');
  t('key1');
}
function B() {
  const t = useTranslations('ns2');
  t('key2');
}
"""
        results = discover_usages(code, {'t': 'ns2'})
        assert keys_of(results) == ['ns1.key1', 'ns2.key2']

    def test_declaration_resolves_without_fallback_map(self):
        code = """
const t = useTranslations('auth');
t('title');
"""
        assert keys_of(discover_usages(code)) == ['auth.title']

    def test_dynamic_accessor_falls_back_to_map(self):
        code = """
const t = useTranslations(getNs());
t('title');
"""
        assert keys_of(discover_usages(code, {'t': '<dynamic:unknown:L2>'})) == ['<dynamic:unknown:L2>.title']
        assert discover_usages(code) == []

    def test_empty_scoped_namespace_does_not_fall_back(self):
        code = """
const t = useTranslations('');
t('title');
"""
        assert keys_of(discover_usages(code, {'t': 'other'})) == ['title']


class TestMapExpansion:
    """`ARRAY.map(item => t(item))` over literal arrays."""

    def test_string_array(self):
        code = """
const CATEGORIES = ['electronics', 'books'];
CATEGORIES.map(cat => t(cat));
"""
        results = discover_usages(code, {'t': 'common'})
        assert keys_of(results) == ['common.electronics', 'common.books']
        assert results[0].start == results[1].start, "expanded keys share the call-site span"
        assert all(r.quoted is False for r in results)

    def test_string_array_as_const(self):
        code = """
const CATEGORIES = ['a', 'b'] as const;
CATEGORIES.map(cat => t(cat));
"""
        assert keys_of(discover_usages(code, {'t': 'common'})) == ['common.a', 'common.b']

    def test_imported_array(self):
        code = """
import { CATEGORIES } from './constants';
CATEGORIES.map(cat => t(cat));
"""

        def importer(path):
            if path == './constants':
                return "export const CATEGORIES = ['electronics', 'books'];"
            return None

        results = discover_usages(code, {'t': 'common'}, importer)
        assert keys_of(results) == ['common.electronics', 'common.books']

    def test_object_array_property(self):
        code = """
const SECTIONS = [
  { id: 'section-basic', label: 'nav.basic' },
  { id: 'section-groupbuy', label: 'nav.group_buy' },
];
SECTIONS.map((section) => t(section.label));
"""
        results = discover_usages(code, {'t': 'common'})
        assert keys_of(results) == ['common.nav.basic', 'common.nav.group_buy']

    def test_object_array_shorthand_property(self):
        code = """
const label = 'home';
const NAV = [{ label }];
const t = useTranslations('nav');
NAV.map(i => t(i.label));
"""
        assert keys_of(discover_usages(code)) == ['nav.home']

    def test_object_array_skips_missing_property(self):
        code = """
const ITEMS = [{ id: 'item1' }, { label: 'x' }, { id: 'item2' }];
ITEMS.map(i => t(i.id));
"""
        assert keys_of(discover_usages(code, {'t': 'common'})) == ['common.item1', 'common.item2']

    def test_function_expression_callback(self):
        code = """
const ITEMS = ['a'];
ITEMS.map(function (item) { return t(item); });
"""
        assert keys_of(discover_usages(code, {'t': 'common'})) == ['common.a']

    def test_jsx_navigation(self):
        code = """
import { useTranslations } from 'next-intl';

const NAV = [
  { href: '/', label: 'home' },
  { href: '/about', label: 'about' },
];

export function Nav() {
  const t = useTranslations('nav');
  return (
    <ul>
      {NAV.map((item) => (
        <li key={item.href}>{t(item.label)}</li>
      ))}
    </ul>
  );
}
"""
        assert keys_of(discover_usages(code)) == ['nav.home', 'nav.about']

    def test_second_parameter_not_expanded(self):
        code = """
const ITEMS = ['a', 'b'];
ITEMS.map((item, index) => t(index));
"""
        assert discover_usages(code, {'t': 'common'}) == []

    def test_this_arg_disables_expansion(self):
        code = """
const ITEMS = ['a', 'b'];
ITEMS.map(item => t(item), context);
"""
        assert discover_usages(code, {'t': 'common'}) == []

    def test_other_array_methods_not_expanded(self):
        code = """
const ITEMS = ['a', 'b'];
ITEMS.forEach(item => t(item));
"""
        assert discover_usages(code, {'t': 'common'}) == []

    def test_destructured_parameter_not_expanded(self):
        code = """
const ITEMS = [{ id: 'a' }];
ITEMS.map(({ id }) => t(id));
"""
        assert discover_usages(code, {'t': 'common'}) == []

    def test_mixed_array_not_expanded(self):
        code = """
const ITEMS = ['a', { id: 'b' }];
ITEMS.map(item => t(item));
"""
        assert discover_usages(code, {'t': 'common'}) == []

    def test_strings_accessed_as_records_not_expanded(self):
        code = """
const ITEMS = ['a', 'b'];
ITEMS.map(item => t(item.label));
"""
        assert discover_usages(code, {'t': 'common'}) == []


class TestOffsets:
    """Spans are character offsets of the key argument."""

    def test_span_covers_argument(self):
        code = "t('login.title');"
        result = discover_usages(code, {'t': 'auth'})[0]
        assert code[result.start:result.end] == "'login.title'"

    def test_span_after_non_ascii_text(self):
        code = "const label = 'Über';\nt('title');"
        result = discover_usages(code, {'t': 'auth'})[0]
        assert code[result.start:result.end] == "'title'"

    def test_as_const_span_includes_assertion(self):
        code = "t('title' as const);"
        result = discover_usages(code, {'t': 'auth'})[0]
        assert code[result.start:result.end] == "'title' as const"
        assert result.quoted is False


class TestRobustness:
    def test_unparsable_source(self):
        assert discover_usages("t('title'", {'t': 'auth'}) == []

    def test_out_of_range_code_point_escape(self):
        """The whole file is a syntax error, so no key is reported, not even valid ones."""
        code = "const t = useTranslations('a');\nt('\\u{110000}');\nt('ok');"
        assert discover_usages(code) == []
        assert discover_accessors(code) == []

    def test_lone_surrogate(self):
        code = "const t = useTranslations('a');\nt('\ud800');"
        assert discover_usages(code) == []
        assert discover_accessors(code) == []

    def test_repeatable(self):
        code = """
const ITEMS = ['a', 'b'];
const t = useTranslations('nav');
ITEMS.map(item => t(item));
t('title');
"""
        first = discover_usages(code)
        assert first == discover_usages(code)
        assert first[0] == AnalyzedKey(
            key='nav.a',
            start=code.index('item))'),
            end=code.index('item))') + len('item'),
            quoted=False,
            variable_name='t',
            namespace='nav',
        )
