"""
Notion Webhook 受信モジュール。

- schemas: Webhook ペイロードと処理結果のモデル
- service: Webhook 1 件を通知に変換・送信するパイプライン
- router: POST /notion/webhook エンドポイント
"""
