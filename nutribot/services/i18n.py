"""User-facing texts (Turkish). Messages are sent with HTML parse mode."""
from __future__ import annotations

TEXTS = {
    # onboarding
    "onboarding.welcome": (
        "🍽️ <b>Beslenme Takibine Başlıyoruz!</b>\n\n"
        "Sizin için kişiselleştirilmiş beslenme takibi yapacağım.\n\n"
        "📅 <b>Öğün saatlerinizi öğrenmem gerekiyor:</b>\n"
        "• Kahvaltı zamanınız\n"
        "• Öğle yemeği zamanınız\n"
        "• Akşam yemeği zamanınız\n\n"
        "Bu bilgiler sayesinde size hatırlatmalar gönderebilirim.\n\n"
        "<b>Kahvaltı saatiniz nedir?</b> (Örnek: 09:00)"
    ),
    "onboarding.ask_breakfast": "<b>Kahvaltı saatiniz nedir?</b> (Örnek: 09:00)",
    "onboarding.ask_lunch": "Şimdi öğle yemeği saatinizi öğrenebilir miyim?\n(Örnek: 13:00)",
    "onboarding.ask_dinner": "Son olarak akşam yemeği saatinizi öğrenebilir miyim?\n(Örnek: 19:00)",
    "onboarding.breakfast_saved": "✅ <b>Kahvaltı saati kaydedildi:</b> {time}\n\n",
    "onboarding.lunch_saved": "✅ <b>Öğle yemeği saati kaydedildi:</b> {time}\n\n",
    "onboarding.invalid_time": (
        "❌ <b>Geçersiz saat formatı</b>\n\n"
        "Lütfen HH:MM formatında girin.\n"
        "Örnek: 09:00, 13:30, 19:45\n\n"
    ),
    "onboarding.complete": (
        "🎉 <b>Kurulum Tamamlandı!</b>\n\n"
        "✅ Kahvaltı: {breakfast}\n"
        "✅ Öğle: {lunch}\n"
        "✅ Akşam: {dinner}\n\n"
        "Artık beslenme takibinize başlayabilirsiniz!\n\n"
        "📸 <b>Yemek fotoğrafı gönderin</b> - Kalori analizi\n"
        "💧 <b>'250 ml su içtim'</b> - Su takibi\n"
        "📊 <b>'rapor'</b> - Günlük rapor\n\n"
        "İyi beslenmeler! 🥗"
    ),

    # meals
    "meal.breakfast": "Kahvaltı",
    "meal.lunch": "Öğle Yemeği",
    "meal.dinner": "Akşam Yemeği",
    "meal.snack": "Ara Öğün",
    "meal.saved": (
        "✅ <b>{meal} Kaydedildi!</b>\n\n"
        "📝 {description}\n"
        "🔥 {calories:.0f} kcal\n\n"
        "📊 Bugün: {total:.0f} kcal ({count} öğün)"
    ),
    "meal.images_today": "\n📸 Resim: {count}/{limit}",
    "meal.image_limit": (
        "⚠️ <b>Günlük resim limiti</b> ({limit}/{limit})\n\n"
        "Yarın tekrar fotoğraf gönderebilirsin.\n"
        "Bugün için: ogun tavuk göğsü ve salata"
    ),
    "meal.usage": "❌ Kullanım: ogun [yemek açıklaması]\n\nÖrnek: ogun tavuk göğsü ve salata",
    "meal.text_failed": "❌ Analiz yapılamadı.\nLütfen daha detaylı açıkla veya fotoğraf gönder.",
    "meal.image_failed": "❌ Resim analiz edilemedi. Tekrar dene.",

    # water
    "water.saved": (
        "💧 <b>{amount} ml kaydedildi!</b>\n\n"
        "Bugün: {total} ml / {goal} ml\n"
        "Kalan: {remaining} ml\n\n"
        "💡 Hızlıca kaydet: 250 ml su içtim"
    ),
    "water.buttons": "💧 <b>Su Kaydı</b>\n\nNe kadar su içtin?",

    # report / history / advice
    "history.empty": "📜 Henüz kayıtlı öğün yok.",
    "history.title": "📜 <b>Son {count} Öğün</b>\n\n",
    "history.item": "{index}. {meal} • {calories:.0f} kcal\n{description}\n{when}\n\n",
    "advice.failed": "⚠️ Şu anda tavsiye alınamıyor. Lütfen daha sonra tekrar deneyin.",
    "advice.rate_limited": "⚠️ Çok fazla istek gönderildi. Lütfen birkaç dakika sonra tekrar deneyin.",

    # settings
    "settings.not_set": "Ayarlanmamış",
    "settings.summary": (
        "⚙️ <b>Ayarlarınız</b>\n\n"
        "🕐 <b>Öğün Saatleri</b>\n"
        "Kahvaltı: {breakfast} {breakfast_on}\n"
        "Öğle: {lunch} {lunch_on}\n"
        "Akşam: {dinner} {dinner_on}\n\n"
        "🎯 <b>Günlük Hedefler</b>\n"
        "{calorie_goal} kcal kalori\n"
        "{water_goal} ml su ({water_litres:.1f}L)\n\n"
        "💧 <b>Su Hatırlatma</b>\n"
        "{water_on} Her {water_interval} dakika\n\n"
        "🌙 <b>Sessiz Saatler</b>\n"
        "{silent_start} - {silent_end}\n\n"
        "🌍 <b>Zaman Dilimi</b>\n"
        "{timezone}\n\n"
        "<b>Değiştirmek için:</b>\n"
        "kalorihedefi 2500\n"
        "suhedefi 3000\n"
        "sessiz 23:00 07:00\n"
        "saat kahvalti 09:00\n"
        "suaraligi 120\n"
        "timezone Europe/Istanbul"
    ),

    # meal time
    "time.usage": "❌ Kullanım: saat [kahvalti|ogle|aksam] HH:MM\nÖrnek: saat kahvalti 09:00",
    "time.invalid": "❌ Geçersiz saat formatı\nHH:MM olmalı (örn: 09:00, 13:30)",
    "time.invalid_meal": "❌ Geçersiz öğün tipi. Kullan: kahvalti, ogle, aksam",
    "time.updated": "✅ {meal} saati {time} olarak güncellendi!",

    # timezone
    "tz.usage": (
        "❌ Kullanım: timezone [zaman dilimi]\n\n"
        "Örnekler:\n"
        "timezone Europe/Istanbul\n"
        "timezone America/New_York\n"
        "timezone Asia/Tokyo"
    ),
    "tz.invalid": "❌ Geçersiz zaman dilimi: {tz}\n\nÖrnek: Europe/Istanbul",
    "tz.updated": "✅ Zaman diliminiz {tz} olarak güncellendi!",

    # water interval
    "interval.usage": "❌ Kullanım: suaraligi [dakika]\nÖrnek: suaraligi 120",
    "interval.out_of_range": "❌ Geçersiz aralık: {value} dakika\nLütfen 1-480 dakika arası bir değer girin.",
    "interval.not_number": "❌ Geçersiz sayı: {value}\nLütfen sayı girin (örn: 120)",
    "interval.updated": "✅ Su hatırlatma aralığı {minutes} dakika ({hours:.1f} saat) olarak güncellendi!",

    # water goal
    "water_goal.usage": "❌ Kullanım: suhedefi [ml]\nÖrnek: suhedefi 2500",
    "water_goal.out_of_range": "❌ Geçersiz hedef: {value} ml\nLütfen 500-10000 ml arası bir değer girin.",
    "water_goal.not_number": "❌ Geçersiz sayı: {value}\nLütfen sayı girin (örn: 2000)",
    "water_goal.updated": "✅ Günlük su hedefiniz {goal} ml ({litres:.1f} litre) olarak güncellendi!",

    # calorie goal
    "calorie_goal.current": (
        "🎯 <b>Günlük Kalori Hedefi</b>\n\n"
        "Mevcut hedefiniz: {goal} kcal\n\n"
        "Değiştirmek için:\n"
        "<code>kalorihedefi [miktar]</code>\n\n"
        "Örnek: kalorihedefi 2500"
    ),
    "calorie_goal.out_of_range": "❌ Kalori hedefi 500-5000 kcal arasında olmalıdır.",
    "calorie_goal.not_number": "❌ Geçersiz sayı: {value}\nLütfen sayı girin (örn: 2500)",
    "calorie_goal.updated": "✅ Günlük kalori hedefiniz {goal} kcal olarak güncellendi!",

    # silent hours
    "silent.current": (
        "🌙 <b>Sessiz Saatler</b>\n\n"
        "Mevcut ayarınız: {start} - {end}\n\n"
        "Bu saatler arasında hatırlatma gönderilmez.\n\n"
        "Değiştirmek için:\n"
        "<code>sessiz [başlangıç] [bitiş]</code>\n\n"
        "Örnek: sessiz 23:00 07:00"
    ),
    "silent.invalid": "❌ Geçersiz saat formatı. HH:MM formatında girin.\nÖrnek: sessiz 23:00 07:00",
    "silent.updated": "✅ Sessiz saatleriniz {start} - {end} olarak güncellendi!",

    # favourites
    "fav.empty": (
        "⭐ <b>Favori Yemekler</b>\n\n"
        "Henüz favori yok.\n\n"
        "<b>Ekle:</b>\n"
        "favori ekle fav1 Tavuklu pilav\n\n"
        "<b>Kullan:</b>\n"
        "Sadece 'fav1' yaz!"
    ),
    "fav.list_title": "⭐ <b>Favori Yemekleriniz</b>\n\n",
    "fav.list_item": "• {name} • {calories:.0f} kcal\n   {description}\n",
    "fav.list_footer": "\n💡 Kaydet: Sadece favori adını yaz",
    "fav.add_usage": "❌ Kullanım: favori ekle [isim] [açıklama]\n\nÖrnek: favori ekle fav1 Tavuklu pilav ve salata",
    "fav.invalid_name": "❌ Favori ismi sadece harf, rakam ve _ içerebilir.",
    "fav.reserved_name": "❌ '{name}' bir komut olarak kullanılıyor, başka bir isim seçin.",
    "fav.added": (
        "✅ <b>Favori eklendi!</b>\n\n"
        "{name} • {calories:.0f} kcal\n"
        "{description}\n\n"
        "💡 Kaydet: Sadece '{name}' yaz"
    ),
    "fav.delete_usage": "❌ Kullanım: favori sil [isim]\n\nÖrnek: favori sil fav1",
    "fav.deleted": "✅ '{name}' favorilerden silindi.",
    "fav.delete_missing": "❌ '{name}' adında bir favori yok.",
    "fav.bad_subcommand": (
        "❌ Geçersiz komut.\n\n"
        "Kullanılabilir komutlar:\n"
        "• <code>favori</code> - Liste göster\n"
        "• <code>favori ekle [isim] [açıklama]</code>\n"
        "• <code>favori sil [isim]</code>"
    ),
    "fav.logged": "✅ <b>{meal} kaydedildi!</b>\n\n{description}\n🔥 {calories:.0f} kcal",
    "fav.not_found": "❌ '{name}' bulunamadı\n\nEklemek için:\nfavori ekle {name} [açıklama]",

    # help
    "help": (
        "📱 <b>Beslenme Takip Botu</b>\n\n"
        "<b>🍽️ Nasıl Kullanılır?</b>\n"
        "• Yemek fotoğrafı gönder\n"
        "• ogun [açıklama] - Yazarak kaydet\n"
        "• su - Hızlı su kaydı menüsü 💧\n"
        "• 250 ml içtim - Direkt su takibi\n\n"
        "<b>📊 Ana Komutlar</b>\n"
        "rapor - Günlük özet\n"
        "geçmiş - Son 5 öğün\n"
        "tavsiye - Beslenme önerisi\n"
        "ayarlar - Tüm ayarlar\n\n"
        "<b>⭐ Favori Yemekler</b>\n"
        "favori - Liste görüntüle\n"
        "favori ekle fav1 Tavuklu pilav\n"
        "favori sil fav1\n"
        "fav1 - Hızlı kayıt\n\n"
        "<b>🎯 Hedefler</b>\n"
        "kalorihedefi 2500\n"
        "suhedefi 3000\n"
        "sessiz 23:00 07:00\n\n"
        "<b>⚙️ Ayarlar</b>\n"
        "saat kahvalti 09:00\n"
        "suaraligi 120\n"
        "timezone Europe/Istanbul\n\n"
        "<b>💡 İpucu:</b> Komutlarda '/' kullanmana gerek yok!"
    ),

    # reminders
    "reminder.breakfast": "☀️ <b>Kahvaltı zamanı!</b>\n\nYedikten sonra fotoğrafını gönder 📸",
    "reminder.lunch": "🌞 <b>Öğle yemeği zamanı!</b>\n\nYedikten sonra fotoğrafını gönder 📸",
    "reminder.dinner": "🌙 <b>Akşam yemeği zamanı!</b>\n\nYedikten sonra fotoğrafını gönder 📸",
    "reminder.water": "💧 <b>Su içme zamanı!</b>\n\nEn az 1 bardak su iç.\nKaydet: 250 ml su içtim",
    "reminder.summary": "🌙 <b>Günlük Özet</b>\n\n{report}",
    "reminder.window": (
        "👋 Bir süredir görüşemedik!\n\n"
        "Hatırlatmaları almaya devam etmek için bana bir mesaj gönder.\n"
        "Örnek: rapor"
    ),

    # errors
    "error.generic": "⚠️ Bir hata oluştu. Lütfen biraz sonra tekrar deneyin.",
}


def t(key: str, **kwargs) -> str:
    text = TEXTS.get(key, key)
    return text.format(**kwargs) if kwargs else text
