import pytest

from wle.ml import config
from wle.ml.data_loader import load_table, load_test_table, load_training_table
from wle.ml.errors import DataFetchError

TRAINING_CSV = """\
"","user_name","roll_belt","kurtosis_roll_belt","classe"
"1","carlitos",1.41,,"A"
"2","carlitos",1.42,"#DIV/0!","A"
"3","pedro",1.48,"NA","B"
"4","pedro",1.50,"-0.0166","B"
"""

TEST_CSV = """\
"","user_name","roll_belt","kurtosis_roll_belt","problem_id"
"1","pedro",123,NA,1
"2","jeremy",1.02,NA,2
"""


@pytest.fixture
def csv_files(tmp_path):
    train = tmp_path / "pml-training.csv"
    test = tmp_path / "pml-testing.csv"
    train.write_text(TRAINING_CSV)
    test.write_text(TEST_CSV)
    return str(train), str(test)


def test_missing_markers_parse_as_nan(csv_files):
    df = load_training_table(csv_files[0])
    assert df["kurtosis_roll_belt"].isna().sum() == 3
    assert df["kurtosis_roll_belt"].dtype.kind == "f"


def test_unnamed_row_number_renamed(csv_files):
    df = load_training_table(csv_files[0])
    assert "X" in df.columns
    assert list(df["X"]) == [1, 2, 3, 4]


def test_test_table_has_problem_id(csv_files):
    df = load_test_table(csv_files[1])
    assert list(df[config.ID_COLUMN]) == [1, 2]


def test_unreachable_source_is_fatal(tmp_path):
    with pytest.raises(DataFetchError):
        load_table(str(tmp_path / "absent.csv"))


def test_wrong_layout_is_fatal(csv_files):
    with pytest.raises(DataFetchError):
        load_training_table(csv_files[1])


def test_empty_table_is_fatal(tmp_path):
    path = tmp_path / "empty.csv"
    path.write_text('"user_name","classe"\n')
    with pytest.raises(DataFetchError):
        load_training_table(str(path))
