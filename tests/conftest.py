"""
Shared pytest fixtures for bracket engine tests.

Running tests:
    pytest tests/
"""
import pytest
import sys
import os

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from bracket_engine.models import Team, Player


@pytest.fixture
def five_teams():
    """Five teams listed from strongest to weakest record."""
    return [
        Team(id='A', name='Aces', wins=15, losses=0),
        Team(id='B', name='Baseliners', wins=12, losses=3),
        Team(id='C', name='Volleyers', wins=9, losses=6),
        Team(id='D', name='Drop Shots', wins=6, losses=9),
        Team(id='E', name='Lobbers', wins=3, losses=12),
    ]


@pytest.fixture
def four_teams():
    return [
        Team(id='north', name='North', wins=8, losses=2),
        Team(id='south', name='South', wins=6, losses=4),
        Team(id='east', name='East', wins=4, losses=6),
        Team(id='west', name='West', wins=2, losses=8),
    ]


@pytest.fixture
def school_players():
    """Nine players from four schools; one Jefferson player is unrated."""
    return [
        Player(id='L1', name='Lena', school='Lincoln', rating=12.0, gender='female'),
        Player(id='L2', name='Liam', school='Lincoln', rating=11.0, gender='male'),
        Player(id='L3', name='Lucy', school='Lincoln', rating=10.0, gender='female'),
        Player(id='R1', name='Rosa', school='Roosevelt', rating=9.0, gender='female'),
        Player(id='R2', name='Ravi', school='Roosevelt', rating=8.0, gender='male'),
        Player(id='J1', name='Jack', school='Jefferson', rating=7.0, gender='male'),
        Player(id='J2', name='June', school='Jefferson', rating=6.0, gender='female'),
        Player(id='J3', name='Jude', school='Jefferson', rating=None, gender='male'),
        Player(id='M1', name='Mia', school='Madison', rating=5.0, gender='female'),
    ]


@pytest.fixture
def client(tmp_path, monkeypatch):
    """Test client writing tournament data under a temporary directory."""
    import app as app_module

    monkeypatch.setattr(app_module, 'DATA_DIR', str(tmp_path))
    app_module.app.config['TESTING'] = True
    with app_module.app.test_client() as client:
        yield client
