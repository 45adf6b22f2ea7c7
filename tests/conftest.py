"""
Pytest configuration and fixtures for USPSA Classification tests
"""

import pytest
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest.fixture(scope="function")
def sample_run_records():
    """Raw classifier run records for two members (camelCase keys as exported upstream)"""
    return [
        # A1234: Carry Optics, 4 stages → B
        {"memberNumber": "a1234", "name": "Jane Doe", "division": "Carry Optics", "classifierId": "99-11",
         "percent": 50.0, "hf": 4.5, "scoreDate": "2023-01-10", "source": "Stage Score",
         "clubid": "CLUB1", "club_name": "Valley Shooters"},
        {"memberNumber": "A1234", "name": "Jane Doe", "division": "co", "classifierId": "03-02",
         "percent": 60.0, "hf": 5.1, "scoreDate": "2023-02-10", "source": "Stage Score",
         "clubid": "CLUB1", "club_name": "Valley Shooters"},
        {"memberNumber": "A1234", "name": "Jane Doe", "division": "co", "classifierId": "09-04",
         "percent": 70.0, "hf": 6.2, "scoreDate": "2023-03-10", "source": "Stage Score",
         "clubid": "CLUB2", "club_name": "Mountain Gun Club"},
        {"memberNumber": "A1234", "name": "Jane Doe", "division": "co", "classifierId": "13-01",
         "percent": 80.0, "hf": 7.0, "scoreDate": "2023-04-10", "source": "Stage Score",
         "clubid": "CLUB2", "club_name": "Mountain Gun Club"},
        # TY5678: Open, 4 stages + 1 zero
        {"memberNumber": "TY5678", "name": "John Roe", "division": "opn", "classifierId": "99-11",
         "percent": 90.0, "hf": 9.0, "scoreDate": "2023-01-15", "source": "Stage Score",
         "clubid": "CLUB1", "club_name": "Valley Shooters"},
        {"memberNumber": "TY5678", "name": "John Roe", "division": "opn", "classifierId": "03-02",
         "percent": 92.0, "hf": 9.5, "scoreDate": "2023-02-15", "source": "Stage Score",
         "clubid": "CLUB1", "club_name": "Valley Shooters"},
        {"memberNumber": "TY5678", "name": "John Roe", "division": "opn", "classifierId": "09-04",
         "percent": 88.0, "hf": 8.8, "scoreDate": "2023-03-15", "source": "Stage Score",
         "clubid": "CLUB1", "club_name": "Valley Shooters"},
        {"memberNumber": "TY5678", "name": "John Roe", "division": "opn", "classifierId": "13-01",
         "percent": 90.0, "hf": 9.1, "scoreDate": "2023-04-15", "source": "Stage Score",
         "clubid": "CLUB1", "club_name": "Valley Shooters"},
        {"memberNumber": "TY5678", "name": "John Roe", "division": "opn", "classifierId": "99-11",
         "percent": 0, "hf": 0, "scoreDate": "2023-05-15", "source": "Stage Score",
         "clubid": "CLUB1", "club_name": "Valley Shooters"},
    ]


@pytest.fixture(scope="function")
def sample_dataset(sample_run_records):
    """Dataset in the data-file layout"""
    return {
        "runs": sample_run_records + [
            # invalid: unknown division
            {"memberNumber": "X1", "division": "laser", "classifierId": "99-11", "percent": 50},
        ],
        "classifiers": [
            {"classifier": "99-11", "name": "El Presidente", "hhfs": {"co": 9.0, "opn": 10.0}},
            {"classifier": "03-02", "name": "Hillbilly Fun", "hhfs": {"co": 8.5, "opn": 10.3}},
            {"classifier": "09-04", "name": "Pucker Factor", "hhfs": {"co": 8.9}},
            {"classifier": "13-01", "name": "Disaster Factor", "hhfs": {"co": 8.75}},
        ],
        "calibration": {
            "co": {"pGM": 1.0, "pM": 5.0, "pA": 15.0},
            "opn": {"pGM": 1.2, "pM": 5.5, "pA": 16.0},
        },
    }
