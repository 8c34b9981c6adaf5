# backend/app/errors.py

"""
Webhook 中継処理で使う例外の分類。

どの例外も「その 1 イベント（またはその 1 通知）」の処理を打ち切るだけで、
プロセス全体やほかのイベントには波及させない前提。
"""


class RelayError(RuntimeError):
    """中継処理全般の基底例外。"""


class ConfigurationError(RelayError):
    """必須の設定値・入力値が欠けている場合の例外。"""


class AccessError(RelayError):
    """認証情報・データベースの所有者不一致、またはアクセス不可の場合の例外。"""


class NotFoundError(RelayError):
    """スキーマ・送信先・テンプレートが存在しない場合の例外。"""


class DecryptionError(RelayError):
    """暗号文が壊れている、または鍵が違う場合の例外。"""


class TransientExternalError(RelayError):
    """Notion API や通知先のネットワークエラー・レート制限など一時的な失敗。"""


class FormattingDegradation(RelayError):
    """
    メッセージ整形時の 1 フィールド分の失敗。

    致命的ではなく、フォーマッタ内部で捕捉されて空文字などに置き換えられる。
    """

    def __init__(self, property_name: str, reason: str) -> None:
        super().__init__(f"Failed to format property '{property_name}': {reason}")
        self.property_name = property_name
        self.reason = reason
