import subprocess
import sys
import os


def test_run_main_no_errors(tmp_path):
    """
    main.pyを短時間実行し、標準エラーに出力がないことを確認するテスト。
    """
    main_py_path = os.path.join(os.path.dirname(__file__), '..', 'main.py')

    # ヘッドレス環境でQtを実行し、データは一時ディレクトリに書き出す
    env = os.environ.copy()
    env['QT_QPA_PLATFORM'] = 'offscreen'
    env['PDF_OVERLAY_DATA_DIR'] = str(tmp_path / 'data')
    env['PDF_OVERLAY_LOG_DIR'] = str(tmp_path / 'logs')

    def unexpected(stderr_output: str):
        # Qtが生成する可能性のある無害なメッセージを除外
        return [
            line for line in stderr_output.splitlines()
            if "QApplication" not in line and "qt." not in line.lower() and "This plugin does not support" not in line
        ]

    try:
        result = subprocess.run(
            [sys.executable, main_py_path],
            capture_output=True,
            text=True,
            timeout=5,
            check=False,
            env=env
        )
    except subprocess.TimeoutExpired as e:
        # タイムアウトは正常な動作（GUIが起動し、ユーザー入力を待っている状態）
        stderr_output = e.stderr.decode('utf-8', errors='ignore') if isinstance(e.stderr, bytes) else (e.stderr or "")
        filtered_stderr = unexpected(stderr_output)
        assert not filtered_stderr, f"main.py実行中に予期せぬエラーが発生しました (Timeout):\n{''.join(filtered_stderr)}"
        assert (tmp_path / 'logs' / 'pdf_overlay_editor.log').exists()
        return

    filtered_stderr = unexpected(result.stderr)
    assert not filtered_stderr, f"main.py実行中にエラーが発生しました:\n{''.join(filtered_stderr)}"
