"""
通知レイヤ用モジュール群。

構成:
- schemas: Webhook に送るペイロード
- service: 通知送信インターフェースと実装（HTTP / ログのみ）
- factory: アプリ全体で共有する Sender の生成
"""
