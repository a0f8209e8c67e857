from nlq.core.sql_tables import referenced_tables


def test_single_quoted_table():
    assert referenced_tables('SELECT * FROM "department"') == ["department"]


def test_join_lists_each_table_once():
    sql = 'SELECT e.name, d.name FROM "employee" e JOIN "department" d ON e.department_id = d.id JOIN "employee" m ON m.id = e.manager_id;'
    assert sorted(referenced_tables(sql)) == ["department", "employee"]


def test_schema_qualified_name_is_unqualified():
    assert referenced_tables('SELECT * FROM public."job"') == ["job"]


def test_empty_or_unparseable():
    assert referenced_tables(None) == []
    assert referenced_tables("   ") == []
    assert referenced_tables('SELECT * FROM "unterminated') == []
