# secret_missions/errors.py
"""
ドメイン例外。

ストア／サービス層はこれらを投げ、main.py の例外ハンドラが
HTTP ステータスと {"detail": message} に変換する。
"""


class SecretMissionsError(Exception):
    """全ドメイン例外の基底クラス"""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(SecretMissionsError):
    """ゲーム／プレイヤー／ミッション／ルームコードが存在しない"""

    status_code = 404


class ConflictError(SecretMissionsError):
    """ルームコード重複、二重提出、後戻りする状態遷移など"""

    status_code = 409


class ValidationError(SecretMissionsError):
    """リクエスト内容がゲーム状態と矛盾する"""

    status_code = 400


class UnavailableError(SecretMissionsError):
    """ストレージに接続できない"""

    status_code = 503


class ResourceExhaustedError(SecretMissionsError):
    """ルームコードの再生成回数を使い切った"""

    status_code = 503
