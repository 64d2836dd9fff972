import json

from click.testing import CliRunner
import pytest

from starrate.__main__ import main


@pytest.fixture
def beatmap_path(tmp_path):
    path = tmp_path / 'beatmap.json'
    path.write_text(json.dumps({
        'circle_size': 4,
        'approach_rate': 9,
        'overall_difficulty': 8,
        'hit_objects': [
            {
                'type': 'circle',
                'x': 100 + 300 * (n % 2),
                'y': 192,
                'time': 1000 + 250 * n,
            }
            for n in range(50)
        ] + [
            {
                'type': 'slider',
                'x': 256,
                'y': 192,
                'time': 14000,
                'path_type': 'L',
                'control_points': [[140, 0]],
            },
            {
                'type': 'spinner',
                'x': 256,
                'y': 192,
                'time': 16000,
                'end_time': 18000,
            },
        ],
    }))
    return path


@pytest.fixture
def broken_path(tmp_path):
    path = tmp_path / 'broken.json'
    path.write_text('{"circle_size": 4')
    return path


@pytest.mark.parametrize('ruleset', ['osu', 'droid'])
def test_difficulty(beatmap_path, ruleset):
    result = CliRunner().invoke(
        main,
        ['difficulty', str(beatmap_path), '--ruleset', ruleset],
    )
    assert result.exit_code == 0, result.output
    assert f'{beatmap_path}: ' in result.output
    assert 'stars' in result.output


def test_difficulty_mods(beatmap_path):
    runner = CliRunner()
    nomod = runner.invoke(main, ['difficulty', str(beatmap_path)])
    double_time = runner.invoke(
        main,
        ['difficulty', str(beatmap_path), '--mods', 'DT'],
    )
    assert nomod.exit_code == 0
    assert double_time.exit_code == 0
    assert nomod.output != double_time.output


def test_bad_arguments(beatmap_path, tmp_path):
    runner = CliRunner()

    result = runner.invoke(
        main,
        ['difficulty', str(beatmap_path), '--mods', 'XYZ'],
    )
    assert result.exit_code == 2

    result = runner.invoke(
        main,
        ['difficulty', str(beatmap_path), '--ruleset', 'taiko'],
    )
    assert result.exit_code == 2

    result = runner.invoke(
        main,
        ['difficulty', str(tmp_path / 'missing.json')],
    )
    assert result.exit_code == 2


def test_skip_exceptions(beatmap_path, broken_path):
    runner = CliRunner()

    result = runner.invoke(
        main,
        ['difficulty', str(broken_path), str(beatmap_path)],
    )
    assert result.exit_code != 0
    assert isinstance(result.exception, ValueError)

    result = runner.invoke(
        main,
        [
            'difficulty',
            str(broken_path),
            str(beatmap_path),
            '--skip-exceptions',
        ],
    )
    assert result.exit_code == 0
    assert f'{beatmap_path}: ' in result.output
    assert f'{broken_path}: ' not in result.output


@pytest.mark.parametrize('ruleset', ['osu', 'droid'])
def test_performance(beatmap_path, ruleset):
    result = CliRunner().invoke(
        main,
        [
            'performance',
            str(beatmap_path),
            '--ruleset', ruleset,
            '--accuracy', '98.5',
            '--misses', '1',
            '--combo', '30',
        ],
    )
    assert result.exit_code == 0, result.output
    assert ' pp (' in result.output


def test_tap_penalty(beatmap_path):
    runner = CliRunner()

    def tap(*args):
        result = runner.invoke(
            main,
            ['performance', str(beatmap_path), '--ruleset', 'droid', *args],
        )
        assert result.exit_code == 0, result.output
        return result.output

    assert tap() == tap('--tap-penalty', '1')
    assert tap() != tap('--tap-penalty', '2')

    result = runner.invoke(
        main,
        ['performance', str(beatmap_path), '--tap-penalty', '0.5'],
    )
    assert result.exit_code == 2
