import pytest

import demo


@pytest.fixture
def fake_dataset(monkeypatch, clusters):
    def load(name, num_points=None, root='data'):
        data, labels = clusters
        return data[:num_points], labels[:num_points]

    monkeypatch.setattr(demo, 'load_dataset', load)


def test_main_writes_visualization(fake_dataset, tmp_path):
    output = tmp_path / 'pacmap_visualization.html'
    png = tmp_path / 'pacmap.png'
    code = demo.main(['--num-points', '200', '--iters', '40', '--seed', '1',
                      '--output', str(output), '--png', str(png)])
    assert code == 0
    assert output.exists()
    assert png.exists()


def test_main_animation(fake_dataset, tmp_path):
    gif = tmp_path / 'pacmap.gif'
    code = demo.main(['--num-points', '100', '--iters', '30', '--seed', '1',
                      '--output', str(tmp_path / 'out.html'), '--animation', str(gif)])
    assert code == 0
    assert gif.exists()


def test_main_reports_engine_errors(fake_dataset, tmp_path):
    output = tmp_path / 'out.html'
    code = demo.main(['--num-points', '5', '--num-nbrs', '10', '--output', str(output)])
    assert code == 1
    assert not output.exists()
