import pytest

from lox import Interpreter
from lox.exceptions import ErrorCode, LoxRuntimeError
from lox.interpreter import interpret
from lox.lexer import scan
from lox.lox_data import LoxFunction, stringify
from lox.parser import parse
from lox.resolver import resolve


def assert_output(result, expected):
    assert result.errors == []
    assert result.output == expected


@pytest.mark.parametrize('source, expected', [
    pytest.param('print 1 + 2 * 3;', '7', id='precedence'),
    pytest.param('print (1 + 2) * 3;', '9', id='grouping'),
    pytest.param('print 10 / 4;', '2.5', id='division'),
    pytest.param('print 7 - 10;', '-3', id='negative'),
    pytest.param('print -(2);', '-2', id='unary-minus'),
    pytest.param('print !nil;', 'true', id='not-nil'),
    pytest.param('print !0;', 'false', id='zero-is-truthy'),
    pytest.param('print 1 < 2;', 'true', id='less'),
    pytest.param('print 2 <= 1;', 'false', id='less-equal'),
    pytest.param('print 3 > 2;', 'true', id='greater'),
    pytest.param('print 2 >= 2;', 'true', id='greater-equal'),
    pytest.param('print 1 == 1;', 'true', id='equal'),
    pytest.param('print 1 != 1;', 'false', id='not-equal'),
    pytest.param('print nil == nil;', 'true', id='nil-equal'),
    pytest.param('print 1 == "1";', 'false', id='no-coercion-in-equality'),
    pytest.param('print "a" + "b";', 'ab', id='concatenate'),
    pytest.param('print "1" + 2;', '12', id='string-plus-number'),
    pytest.param('print 2 + "1";', '21', id='number-plus-string'),
    pytest.param('print "n=" + 2.5;', 'n=2.5', id='fraction-to-string'),
    pytest.param('print nil;', 'nil', id='nil'),
    pytest.param('print "a" or "b";', 'a', id='or-returns-operand'),
    pytest.param('print nil or "b";', 'b', id='or-falls-through'),
    pytest.param('print nil and "b";', 'nil', id='and-short-circuits'),
    pytest.param('print 1 and 2;', '2', id='and-returns-right'),
    pytest.param('print true ? 1 : 2;', '1', id='ternary-true'),
    pytest.param('print nil ? 1 : 2;', '2', id='ternary-false'),
    pytest.param('print 1, 2;', '1', id='comma-returns-left'),
    pytest.param('print clock;', '<native fn>', id='native-function'),
])
def test_expressions(run_lox, source, expected):
    assert_output(run_lox(source), [expected])


@pytest.mark.parametrize('source, message', [
    pytest.param('print -"a";', 'Operand must be a number.', id='negate-string'),
    pytest.param('print 1 < "a";', 'Operands must be numbers.', id='compare-string'),
    pytest.param('print "a" * 2;', 'Operands must be numbers.', id='multiply-string'),
    pytest.param('print nil + 1;', 'Operands must be two numbers, two strings, or a string and a number.',
                 id='add-nil'),
    pytest.param('print true + "a";', 'Operands must be two numbers, two strings, or a string and a number.',
                 id='add-bool'),
    pytest.param('print 1 / 0;', 'Division by zero.', id='divide-by-zero'),
    pytest.param('print 1 / -0;', 'Division by zero.', id='divide-by-negative-zero'),
    pytest.param('print missing;', "Undefined variable 'missing'.", id='undefined-variable'),
    pytest.param('missing = 1;', "Undefined variable 'missing'.", id='assign-undefined'),
    pytest.param('"str"();', 'Can only call functions and classes.', id='call-string'),
    pytest.param('fun f(a) {} f();', 'Expected 1 arguments but got 0.', id='arity'),
    pytest.param('class A {} A(1);', 'Expected 0 arguments but got 1.', id='class-arity'),
    pytest.param('print 1 .x;', 'Only instances have properties.', id='get-on-number'),
    pytest.param('var a = 1; a.x = 2;', 'Only instances have fields.', id='set-on-number'),
    pytest.param('class A {} print A().x;', "Undefined property 'x'.", id='undefined-property'),
    pytest.param('var B = 1; class A < B {}', 'Superclass must be a class.', id='superclass-not-class'),
])
def test_runtime_errors(run_lox, source, message):
    result = run_lox(source)
    assert result.output == []
    assert result.errors == [f'{message}\n[line 1]']


def test_runtime_error_reports_operator_line(run_lox):
    result = run_lox('var a = 1;\nprint a +\n  nil;')
    assert result.errors == ['Operands must be two numbers, two strings, or a string and a number.\n[line 2]']


def test_runtime_error_stops_the_run(run_lox):
    result = run_lox('print 1;\nprint 1 / 0;\nprint 2;')
    assert result.output == ['1']
    assert len(result.errors) == 1


def test_variables_and_blocks(run_lox):
    source = '''
    var a = "global";
    {
      var a = "block";
      print a;
    }
    print a;
    var b;
    print b;
    '''
    assert_output(run_lox(source), ['block', 'global', 'nil'])


def test_assignment_is_an_expression(run_lox):
    assert_output(run_lox('var a; var b; a = b = 3; print a + b;'), ['6'])


def test_comma_evaluates_both_sides(run_lox):
    assert_output(run_lox('var a = 1; print a, a = 2; print a;'), ['1', '2'])


def test_while_loop(run_lox):
    source = '''
    var i = 0;
    while (i < 3) { print i; i = i + 1; }
    '''
    assert_output(run_lox(source), ['0', '1', '2'])


def test_for_loop(run_lox):
    assert_output(run_lox('for (var i = 0; i < 3; i = i + 1) print i;'), ['0', '1', '2'])


def test_for_loop_without_clauses_returns_from_function(run_lox):
    source = '''
    fun first() {
      var i = 0;
      for (;;) { if (i == 2) return i; i = i + 1; }
    }
    print first();
    '''
    assert_output(run_lox(source), ['2'])


def test_for_loop_closures_capture_each_iteration(run_lox):
    source = '''
    var first; var second;
    for (var i = 0; i < 2; i = i + 1) {
      fun show() { print i; }
      if (first == nil) first = show; else second = show;
    }
    first();
    second();
    '''
    assert_output(run_lox(source), ['0', '1'])


def test_if_else(run_lox):
    source = '''
    if (1 > 2) print "then"; else print "else";
    if (nil) print "skipped";
    '''
    assert_output(run_lox(source), ['else'])


def test_functions_and_recursion(run_lox):
    source = '''
    fun fib(n) {
      if (n < 2) return n;
      return fib(n - 1) + fib(n - 2);
    }
    print fib(10);
    '''
    assert_output(run_lox(source), ['55'])


def test_function_without_return_gives_nil(run_lox):
    assert_output(run_lox('fun f() {} print f();'), ['nil'])


def test_return_unwinds_nested_statements(run_lox):
    source = '''
    fun find() {
      var i = 0;
      while (true) {
        { if (i == 3) { return "found " + i; } }
        i = i + 1;
      }
    }
    print find();
    '''
    assert_output(run_lox(source), ['found 3'])


def test_function_values(run_lox):
    assert_output(run_lox('fun greet() {} print greet;'), ['<fn greet>'])


def test_closures_share_state(run_lox):
    source = '''
    fun makeCounter() {
      var count = 0;
      fun increment() { count = count + 1; return count; }
      return increment;
    }
    var counter = makeCounter();
    counter();
    print counter();
    var other = makeCounter();
    print other();
    '''
    assert_output(run_lox(source), ['2', '1'])


def test_closure_binds_the_variable_in_scope_when_declared(run_lox):
    source = '''
    var a = "outer";
    {
      fun show() { print a; }
      show();
      var a = "inner";
      show();
    }
    '''
    assert_output(run_lox(source), ['outer', 'outer'])


def test_classes_fields_and_methods(run_lox):
    source = '''
    class Point {
      init(x, y) { this.x = x; this.y = y; }
      sum() { return this.x + this.y; }
    }
    var p = Point(1, 2);
    print p.sum();
    p.x = 10;
    print p.sum();
    print Point;
    print p;
    '''
    assert_output(run_lox(source), ['3', '12', 'Point', 'Point instance'])


def test_bound_method_keeps_its_instance(run_lox):
    source = '''
    class Box {
      init(v) { this.v = v; }
      get() { return this.v; }
    }
    var getter = Box("kept").get;
    print getter();
    '''
    assert_output(run_lox(source), ['kept'])


def test_initializer_returns_the_instance(run_lox):
    source = '''
    class A {
      init() { this.n = 1; return; }
    }
    var a = A();
    print a.init() == a;
    print a.n;
    '''
    assert_output(run_lox(source), ['true', '1'])


def test_inheritance_and_super(run_lox):
    source = '''
    class A {
      init(a) { this.a = a; }
      describe() { return "A"; }
    }
    class B < A {
      init(a, b) { super.init(a); this.b = b; }
      describe() { return "B<" + super.describe(); }
    }
    var b = B(1, 2);
    print b.a;
    print b.b;
    print b.describe();
    '''
    assert_output(run_lox(source), ['1', '2', 'B<A'])


def test_inherited_methods_are_found(run_lox):
    source = '''
    class A { hello() { return "hello"; } }
    class B < A {}
    print B().hello();
    '''
    assert_output(run_lox(source), ['hello'])


def test_undefined_super_method(run_lox):
    source = '''
    class A {}
    class B < A { f() { return super.missing; } }
    B().f();
    '''
    result = run_lox(source)
    assert result.errors == ["Undefined property 'missing'.\n[line 3]"]


def test_calling_a_method_too_deep_in_the_chain(run_lox):
    source = '''
    class A { f() { return "A.f"; } }
    class B < A { f() { return "B.f"; } }
    class C < B { g() { return super.f(); } }
    print C().g();
    '''
    assert_output(run_lox(source), ['B.f'])


def test_instances_are_equal_only_to_themselves(run_lox):
    source = '''
    class A {}
    var a = A();
    print a == a;
    print a == A();
    '''
    assert_output(run_lox(source), ['true', 'false'])


def test_globals_survive_between_runs(run_lox):
    output = []
    interpreter = Interpreter(output=output.append)
    run_lox('var a = 1; fun f() { return a; }', interpreter=interpreter, output=output)
    result = run_lox('a = a + 1; print f();', interpreter=interpreter, output=output)
    assert result.errors == []
    assert output == ['2']


def test_resolving_and_running_one_tree_twice_is_identical():
    source = """
    var total = 0;
    for (var i = 1; i <= 4; i = i + 1) total = total + i;
    fun makeCounter() {
      var count = 0;
      fun increment() { count = count + 1; return count; }
      return increment;
    }
    var counter = makeCounter();
    counter();
    class Pair { init(a, b) { this.a = a; this.b = b; } sum() { return this.a + this.b; } }
    var pair = Pair(total, counter());
    print total;
    print pair.sum();
    """
    tokens, _ = scan(source)
    statements, errors = parse(tokens)
    assert errors == []

    first_table, first_errors = resolve(statements)
    second_table, second_errors = resolve(statements)
    assert first_errors == second_errors == []
    assert first_table == second_table

    first_output, second_output = [], []
    first = Interpreter(output=first_output.append)
    second = Interpreter(output=second_output.append)
    assert first.interpret(statements, first_table) == []
    assert second.interpret(statements, second_table) == []

    assert first_output == second_output == ['10', '12']
    assert first.globals.values.keys() == second.globals.values.keys()
    for name, value in first.globals.values.items():
        assert stringify(value) == stringify(second.globals.values[name])
    assert first.globals.values['total'] == second.globals.values['total'] == 10.0


def test_interpret_function():
    tokens, _ = scan('print "x";')
    statements, _ = parse(tokens)
    locals_table, _ = resolve(statements)
    output = []
    errors = interpret(statements, locals_table, Interpreter(output=output.append))
    assert errors == []
    assert output == ['x']


def test_interpret_returns_runtime_error():
    tokens, _ = scan('print -nil;')
    statements, _ = parse(tokens)
    locals_table, _ = resolve(statements)
    errors = Interpreter(output=[].append).interpret(statements, locals_table)
    assert len(errors) == 1
    assert isinstance(errors[0], LoxRuntimeError)
    assert errors[0].error_code == ErrorCode.OPERAND_NOT_NUMBER
    assert errors[0].line == 1


def test_functions_are_lox_functions(run_lox):
    interpreter = Interpreter(output=[].append)
    run_lox('fun f(a, b) {}', interpreter=interpreter)
    function = interpreter.globals.values['f']
    assert isinstance(function, LoxFunction)
    assert function.arity() == 2


def test_compile_errors_prevent_execution(run_lox):
    result = run_lox('print 1;\n{ var a = a; }')
    assert result.output == []
    assert result.errors == ["[line 2] Error at 'a': Can't use local variable in its own initializer."]


def test_whole_number_division_prints_without_fraction(run_lox):
    assert_output(run_lox('print 6 / 2;'), ['3'])


def test_closure_sees_outer_binding_at_declaration(run_lox):
    source = 'var a = "outer"; { fun show(){ print a; } var a = "inner"; show(); }'
    assert_output(run_lox(source), ['outer'])


def test_superclass_initializer_chain(run_lox):
    source = '''
    class A { init(){ this.x = 1; } }
    class B < A { init(){ super.init(); this.y = 2; } }
    var b = B(); print b.x; print b.y;
    '''
    assert_output(run_lox(source), ['1', '2'])


def test_shadowing_with_own_initializer_never_runs(run_lox):
    result = run_lox('var a = 1; { var a = a; }')
    assert result.output == []
    assert result.errors == ["[line 1] Error at 'a': Can't use local variable in its own initializer."]


@pytest.mark.parametrize('source, expected', [
    pytest.param('class A { m() { return THIS; } } print A().m();', 'A instance', id='uppercase-this'),
    pytest.param('class A { m() { return This.n; } } var a = A(); a.n = 3; print a.m();', '3',
                 id='mixed-case-this'),
    pytest.param('class A { m() { return 1; } } class B < A { m() { return SUPER.m() + 1; } } print B().m();',
                 '2', id='uppercase-super'),
])
def test_keyword_case_does_not_change_this_and_super(run_lox, source, expected):
    assert_output(run_lox(source), [expected])
