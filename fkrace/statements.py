from fkrace.entities import Statement

ROW_TEXT = "some text"

CREATE_PARENT_SQL = "CREATE TABLE p (id INT PRIMARY KEY, t TEXT)"
CREATE_CHILD_SQL = (
    "CREATE TABLE c "
    "(id INT PRIMARY KEY, p_id INT NOT NULL REFERENCES p(id) ON DELETE CASCADE, t TEXT)"
)
# Child first: c holds the foreign key.
DROP_SQL = ("DROP TABLE IF EXISTS c", "DROP TABLE IF EXISTS p")


def parent_insert(index: int) -> Statement:
    return Statement("INSERT INTO p VALUES (%s, %s)", (index, ROW_TEXT))


def child_insert(index: int) -> Statement:
    """Child row ``index`` references parent row ``index``."""
    return Statement("INSERT INTO c VALUES (%s, %s, %s)", (index, index, ROW_TEXT))
